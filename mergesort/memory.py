"""Temporary buffer management for the merge step.

Every merge owns exactly one scratch buffer, acquired on entry and released
before it returns, including when the comparator raises. The helpers here
implement that scoped discipline and keep counters that tests use to check
it.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, MutableSequence, Optional

from .exceptions import AllocationFailure


logger = logging.getLogger(__name__)

Allocator = Callable[[int, Any], MutableSequence[Any]]


@dataclass
class AllocationStats:
    """Counters for the scratch buffers of one sort call."""

    acquired: int = 0
    released: int = 0
    failures: int = 0
    live: int = 0
    peak_elements: int = 0


def default_allocator(count: int, like: Any) -> MutableSequence[Any]:
    """Return a scratch sequence able to hold ``count`` elements of ``like``.

    Record buffers know how to build a scratch area of the same record width,
    so they are asked first. Anything else gets a plain list.
    """
    allocate = getattr(like, "allocate", None)
    if callable(allocate):
        return allocate(count)
    return [None] * count


class FailingAllocator:
    """Allocator that fails on the ``fail_on``-th acquisition (1-based).

    Acquisitions before that are delegated to ``delegate``; so are the ones
    after it, which only happen when a caller ignores the failure.
    """

    def __init__(self, fail_on: int = 1, delegate: Optional[Allocator] = None) -> None:
        if fail_on < 1:
            raise ValueError("fail_on must be >= 1")
        self.fail_on = fail_on
        self.delegate = delegate or default_allocator
        self.calls = 0

    def __call__(self, count: int, like: Any) -> MutableSequence[Any]:
        self.calls += 1
        if self.calls == self.fail_on:
            raise MemoryError(f"injected failure on acquisition #{self.calls}")
        return self.delegate(count, like)


@contextmanager
def temporary_buffer(
    count: int,
    like: Any,
    allocator: Optional[Allocator] = None,
    stats: Optional[AllocationStats] = None,
    low: Optional[int] = None,
    high: Optional[int] = None,
) -> Iterator[MutableSequence[Any]]:
    """Acquire a scratch buffer of ``count`` elements and release it on exit.

    Raises :class:`AllocationFailure` when the allocator reports
    ``MemoryError``; nothing is acquired in that case.
    """
    allocate = allocator or default_allocator
    try:
        scratch = allocate(count, like)
    except MemoryError as err:
        if stats is not None:
            stats.failures += 1
        logger.warning("temporary buffer of %d elements unavailable: %s", count, err)
        raise AllocationFailure(count, low, high) from err

    if stats is not None:
        stats.acquired += 1
        stats.live += 1
        if count > stats.peak_elements:
            stats.peak_elements = count
    try:
        yield scratch
    finally:
        if stats is not None:
            stats.released += 1
            stats.live -= 1
        release = getattr(scratch, "release", None)
        if callable(release):
            release()
