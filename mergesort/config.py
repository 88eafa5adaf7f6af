"""Configuration for the sort manager.

Settings come from a YAML file (:func:`load_config`) or from ``MERGESORT_*``
environment variables (:meth:`SortConfig.from_env`), on top of the dataclass
defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

import yaml


STRATEGIES = ("recursive", "bottom_up")
ENV_PREFIX = "MERGESORT_"


@dataclass
class SortConfig:
    """Settings for :class:`mergesort.manager.SortManager`.

    Parameters
    ----------
    strategy:
        ``"recursive"`` for the divide-and-conquer sort or ``"bottom_up"`` for
        the iterative one.
    enable_metrics:
        Whether the manager records :class:`SortMetrics` per call.
    max_history:
        Number of metrics kept per strategy; older entries are dropped.
    log_level:
        Level applied to the ``mergesort`` logger by the manager. Left unset,
        the manager does not touch the logger and the host application's
        logging configuration applies.
    """

    strategy: str = "recursive"
    enable_metrics: bool = True
    max_history: int = 1000
    log_level: Optional[str] = None

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"unknown strategy {self.strategy!r}, expected one of {STRATEGIES}"
            )
        if self.max_history < 1:
            raise ValueError("max_history must be at least 1")
        if self.log_level is not None:
            self.log_level = _level_name(self.log_level)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SortConfig":
        """Build a config from ``MERGESORT_<FIELD>`` environment variables."""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for item in fields(cls):
            raw = environ.get(ENV_PREFIX + item.name.upper())
            if raw is None:
                continue
            values[item.name] = _coerce(item.name, raw)
        return cls(**values)


def _level_name(level: Any) -> str:
    if isinstance(level, str) and level.strip().isdigit():
        level = int(level)
    if isinstance(level, int):
        name = logging.getLevelName(level)
        if not name.startswith("Level "):
            return name
    elif isinstance(level, str):
        name = level.strip().upper()
        if isinstance(logging.getLevelName(name), int):
            return name
    raise ValueError(f"unknown log level {level!r}")


def _coerce(name: str, raw: str) -> Any:
    if name == "enable_metrics":
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"invalid boolean for {name}: {raw!r}")
    if name == "max_history":
        return int(raw)
    return raw.strip()


def load_config(path: str) -> SortConfig:
    """Load :class:`SortConfig` from a YAML file."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    return SortConfig(**data)
