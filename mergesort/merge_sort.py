"""归并排序算法实现。

归并排序是一种分治排序算法：递归地将区间对半分割，直到区间只剩一个元素，
再把两个相邻的有序区间合并成一个有序区间。合并过程需要与被合并区间
等长的临时缓冲区，这部分存储由每次合并自行申请并在返回前释放。

相等元素的处理:
    合并时只有左侧元素严格小于右侧元素才会先取左侧元素，
    相等时取右侧元素，因此本实现 **不是** 稳定排序。

失败处理:
    临时缓冲区申请失败时抛出 AllocationFailure，整个递归链立即终止，
    不会再执行任何合并；此时调用方的缓冲区可能已被部分重排。
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, MutableSequence, Optional

from .base import Algorithm
from .comparators import Comparator, from_key, natural_order, reverse_order
from .memory import Allocator, AllocationStats, temporary_buffer
from .records import RecordBuffer


logger = logging.getLogger(__name__)


@dataclass
class MergeStats:
    """一次排序调用的统计信息。"""
    merges: int = 0
    comparisons: int = 0
    allocations: AllocationStats = field(default_factory=AllocationStats)


@contextmanager
def borrowed_elements(
    data: Any, esize: Optional[int], as_records: bool = False
) -> Iterator[MutableSequence[Any]]:
    """在调用期间把原始字节缓冲区包装成定长记录序列。

    as_records 为 True 时任何缓冲区都按记录处理。这里创建的包装在退出时
    (包括异常退出)立即释放，调用方的缓冲区不会在调用结束后仍被锁定；
    调用方自己传入的 RecordBuffer 和普通序列原样使用，不做释放。
    """
    if isinstance(data, RecordBuffer) or not (
        as_records or isinstance(data, (bytearray, memoryview))
    ):
        yield data
        return
    if esize is None:
        raise ValueError("原始字节缓冲区必须提供元素大小 esize")
    records = RecordBuffer(data, esize)
    try:
        yield records
    finally:
        records.release()


def merge(
    data: Any,
    esize: Optional[int],
    low: int,
    mid: int,
    high: int,
    compare: Comparator,
    *,
    allocator: Optional[Allocator] = None,
    stats: Optional[MergeStats] = None,
) -> None:
    """将 data[low..mid] 与 data[mid+1..high] 两个有序区间合并为一个有序区间。

    参数:
        data: 调用方持有的缓冲区
        esize: 元素字节宽度，仅在 data 为原始字节缓冲区时使用
        low: 左区间起点
        mid: 左区间终点，右区间从 mid + 1 开始
        high: 右区间终点
        compare: 三路比较函数
        allocator: 临时缓冲区分配器，默认使用 default_allocator
        stats: 可选的统计信息收集对象

    异常:
        AllocationFailure: 无法获得临时缓冲区，此时 data 未被修改

    时间复杂度: O(n)
    空间复杂度: O(n)
    """
    with borrowed_elements(data, esize) as elements:
        _merge_runs(elements, low, mid, high, compare, allocator, stats)


def _merge_runs(
    elements: MutableSequence[Any],
    low: int,
    mid: int,
    high: int,
    compare: Comparator,
    allocator: Optional[Allocator],
    stats: Optional[MergeStats],
) -> None:
    count = high - low + 1
    logger.debug("merging [%d, %d] with [%d, %d] (%d elements)", low, mid, mid + 1, high, count)
    alloc_stats = stats.allocations if stats is not None else None

    with temporary_buffer(count, elements, allocator, alloc_stats, low, high) as scratch:
        ipos = low
        jpos = mid + 1
        mpos = 0

        while ipos <= mid and jpos <= high:
            if stats is not None:
                stats.comparisons += 1
            # 相等时取右侧元素
            if compare(elements[ipos], elements[jpos]) < 0:
                scratch[mpos] = elements[ipos]
                ipos += 1
            else:
                scratch[mpos] = elements[jpos]
                jpos += 1
            mpos += 1

        while ipos <= mid:
            scratch[mpos] = elements[ipos]
            ipos += 1
            mpos += 1

        while jpos <= high:
            scratch[mpos] = elements[jpos]
            jpos += 1
            mpos += 1

        for offset in range(count):
            elements[low + offset] = scratch[offset]

    if stats is not None:
        stats.merges += 1


def mgsort(
    data: Any,
    size: int,
    esize: Optional[int],
    low: int,
    high: int,
    compare: Comparator,
    *,
    allocator: Optional[Allocator] = None,
    stats: Optional[MergeStats] = None,
) -> None:
    """对 data[low..high] 原地进行归并排序。

    初次调用时 low 为 0，high 为 size - 1。size 仅作说明用途，
    不会对 low/high 做越界检查。low >= high 时直接返回。

    异常:
        AllocationFailure: 任一次合并无法获得临时缓冲区
    """
    with borrowed_elements(data, esize) as elements:
        if low >= high:
            return
        logger.debug("merge sort of range [%d, %d] (%d elements in buffer)", low, high, size)
        _sort_range(elements, low, high, compare, allocator, stats)


def _sort_range(
    elements: MutableSequence[Any],
    low: int,
    high: int,
    compare: Comparator,
    allocator: Optional[Allocator],
    stats: Optional[MergeStats],
) -> None:
    if low >= high:
        return
    mid = low + (high - low) // 2
    _sort_range(elements, low, mid, compare, allocator, stats)
    _sort_range(elements, mid + 1, high, compare, allocator, stats)
    _merge_runs(elements, low, mid, high, compare, allocator, stats)


def sort(
    buffer: Any,
    size: int,
    esize: int,
    low: int,
    high: int,
    compare: Callable[[bytes, bytes], int],
    *,
    allocator: Optional[Allocator] = None,
    stats: Optional[MergeStats] = None,
) -> None:
    """按字节寻址的缓冲区排序入口。

    buffer 被视为 esize 字节宽的定长记录序列，比较函数接收两个
    bytes 对象。排序直接写回 buffer。

    示例:
        >>> import struct
        >>> raw = bytearray(struct.pack("<3i", 3, 1, 2))
        >>> by_int = lambda a, b: struct.unpack("<i", a)[0] - struct.unpack("<i", b)[0]
        >>> sort(raw, 3, 4, 0, 2, by_int)
        >>> struct.unpack("<3i", raw)
        (1, 2, 3)
    """
    with borrowed_elements(buffer, esize, as_records=True) as records:
        mgsort(records, size, esize, low, high, compare, allocator=allocator, stats=stats)


def resolve_comparator(
    compare: Optional[Comparator] = None,
    key: Optional[Callable[[Any], Any]] = None,
    reverse: bool = False,
) -> Comparator:
    """根据 compare / key / reverse 参数得到最终使用的比较函数。"""
    if compare is not None and key is not None:
        raise ValueError("compare 和 key 不能同时指定")
    if key is not None:
        compare = from_key(key)
    elif compare is None:
        compare = natural_order
    if reverse:
        compare = reverse_order(compare)
    return compare


class MergeSort(Algorithm):
    """使用归并排序算法对序列进行排序。

    属性:
        allocator: 临时缓冲区分配器
        last_stats: 最近一次排序的统计信息
    """

    def __init__(self, allocator: Optional[Allocator] = None) -> None:
        self.allocator = allocator
        self.last_stats: Optional[MergeStats] = None

    def execute(
        self,
        data: Any,
        compare: Optional[Comparator] = None,
        key: Optional[Callable[[Any], Any]] = None,
        reverse: bool = False,
    ) -> List[Any]:
        """返回数据的排序副本，原数据不变。

        时间复杂度: O(n log n)
        空间复杂度: O(n)
        """
        arr = list(data)
        self.sort_in_place(arr, compare=compare, key=key, reverse=reverse)
        return arr

    def sort_in_place(
        self,
        data: MutableSequence[Any],
        compare: Optional[Comparator] = None,
        key: Optional[Callable[[Any], Any]] = None,
        reverse: bool = False,
    ) -> None:
        """原地排序可变序列。"""
        comparator = resolve_comparator(compare, key, reverse)
        stats = MergeStats()
        self.last_stats = stats
        mgsort(
            data,
            len(data),
            None,
            0,
            len(data) - 1,
            comparator,
            allocator=self.allocator,
            stats=stats,
        )
