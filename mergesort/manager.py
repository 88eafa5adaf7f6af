"""
排序管理器 - 排序策略的注册、执行和监控

按名称注册排序策略，统一执行并记录每次调用的指标，
失败时记录日志并原样抛出异常。
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, MutableSequence, Optional

from .bottom_up import bottom_up_sort
from .comparators import Comparator
from .config import SortConfig
from .exceptions import log_and_format_exception
from .memory import Allocator
from .merge_sort import MergeStats, mgsort, resolve_comparator


SortStrategy = Callable[..., None]

STRATEGY_NAMES = {
    "recursive": "merge_sort",
    "bottom_up": "bottom_up_merge_sort",
}


def _recursive(data, compare, allocator=None, stats=None) -> None:
    mgsort(data, len(data), None, 0, len(data) - 1, compare, allocator=allocator, stats=stats)


def _bottom_up(data, compare, allocator=None, stats=None) -> None:
    bottom_up_sort(data, 0, len(data) - 1, compare, allocator=allocator, stats=stats)


@dataclass
class SortMetrics:
    """单次排序的执行指标"""
    execution_time: float
    success: bool = True
    error_message: Optional[str] = None
    input_size: Optional[int] = None
    merges: int = 0
    comparisons: int = 0


class SortRegistry:
    """排序策略注册表"""

    def __init__(self):
        self._strategies: Dict[str, SortStrategy] = {}
        self.register("merge_sort", _recursive)
        self.register("bottom_up_merge_sort", _bottom_up)

    def register(self, name: str, strategy: SortStrategy) -> None:
        """
        注册排序策略

        Args:
            name: 策略名称
            strategy: 签名为 (data, compare, allocator=None, stats=None) 的可调用对象
        """
        if not callable(strategy):
            raise ValueError(f"排序策略 {name} 必须是可调用对象")
        self._strategies[name] = strategy

    def get_strategy(self, name: str) -> SortStrategy:
        if name not in self._strategies:
            raise KeyError(f"未找到排序策略: {name}")
        return self._strategies[name]

    def list_strategies(self) -> List[str]:
        return list(self._strategies.keys())


class SortManager:
    """
    排序管理器

    使用配置中的默认策略或指定策略原地排序，并记录执行指标。
    """

    def __init__(self, config: Optional[SortConfig] = None):
        self.config = config or SortConfig()
        self.logger = logging.getLogger(__name__)
        if self.config.log_level is not None:
            logging.getLogger("mergesort").setLevel(self.config.log_level)
        self.registry = SortRegistry()
        self._metrics_history: Dict[str, List[SortMetrics]] = {}
        self._lock = threading.Lock()

    @property
    def default_strategy(self) -> str:
        return STRATEGY_NAMES[self.config.strategy]

    def sort(
        self,
        data: MutableSequence[Any],
        compare: Optional[Comparator] = None,
        key: Optional[Callable[[Any], Any]] = None,
        reverse: bool = False,
        strategy: Optional[str] = None,
        allocator: Optional[Allocator] = None,
    ) -> MutableSequence[Any]:
        """
        原地排序并返回同一序列

        Args:
            data: 待排序的可变序列
            compare: 三路比较函数
            key: 键函数，不能与 compare 同时使用
            reverse: 是否降序
            strategy: 策略名称，默认取配置中的策略
            allocator: 临时缓冲区分配器

        Raises:
            KeyError: 策略不存在
            AllocationFailure: 临时缓冲区分配失败
        """
        name = strategy or self.default_strategy
        sort_fn = self.registry.get_strategy(name)
        comparator = resolve_comparator(compare, key, reverse)
        stats = MergeStats()

        start_time = time.perf_counter()
        try:
            sort_fn(data, comparator, allocator=allocator, stats=stats)
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            self._record(name, SortMetrics(
                execution_time=execution_time,
                success=False,
                error_message=str(e),
                input_size=len(data),
                merges=stats.merges,
                comparisons=stats.comparisons,
            ))
            log_and_format_exception(e, self.logger)
            raise

        execution_time = time.perf_counter() - start_time
        self._record(name, SortMetrics(
            execution_time=execution_time,
            input_size=len(data),
            merges=stats.merges,
            comparisons=stats.comparisons,
        ))
        self.logger.info(f"排序策略 {name} 执行成功，{len(data)} 个元素，耗时: {execution_time:.4f}s")
        return data

    def get_metrics(self, strategy: str) -> List[SortMetrics]:
        with self._lock:
            return list(self._metrics_history.get(strategy, []))

    def get_performance_summary(self, strategy: str) -> Dict[str, Any]:
        """
        获取排序策略的性能摘要

        Returns:
            性能摘要字典，无记录时为空字典
        """
        metrics = self.get_metrics(strategy)
        if not metrics:
            return {}

        successful = [m for m in metrics if m.success]
        if not successful:
            return {"total_executions": len(metrics), "success_rate": 0.0}

        times = [m.execution_time for m in successful]
        return {
            "total_executions": len(metrics),
            "successful_executions": len(successful),
            "success_rate": len(successful) / len(metrics),
            "avg_execution_time": sum(times) / len(times),
            "min_execution_time": min(times),
            "max_execution_time": max(times),
            "total_comparisons": sum(m.comparisons for m in successful),
            "total_merges": sum(m.merges for m in successful),
        }

    def _record(self, strategy: str, metrics: SortMetrics) -> None:
        if not self.config.enable_metrics:
            return
        with self._lock:
            history = self._metrics_history.setdefault(strategy, [])
            history.append(metrics)
            if len(history) > self.config.max_history:
                del history[:-self.config.max_history]


# 全局排序管理器实例
_sort_manager = None


def get_sort_manager() -> SortManager:
    """获取全局排序管理器实例，首次调用时从环境变量读取配置"""
    global _sort_manager
    if _sort_manager is None:
        _sort_manager = SortManager(SortConfig.from_env())
    return _sort_manager
