"""自底向上的迭代归并排序。

与递归版本契约相同：同样的合并步骤、同样的失败语义，但不使用递归，
而是依次合并宽度为 1、2、4 …… 的相邻有序区间，适合超大输入。
分割点与递归版本不同，因此相等元素的最终相对位置可能不同。
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from .comparators import Comparator
from .memory import Allocator
from .merge_sort import MergeStats, borrowed_elements, merge


logger = logging.getLogger(__name__)


def bottom_up_sort(
    data: Any,
    low: int,
    high: int,
    compare: Comparator,
    *,
    esize: Optional[int] = None,
    allocator: Optional[Allocator] = None,
    stats: Optional[MergeStats] = None,
) -> None:
    """对 data[low..high] 原地进行自底向上的归并排序。

    异常:
        AllocationFailure: 任一次合并无法获得临时缓冲区，之后不再合并

    时间复杂度: O(n log n)
    空间复杂度: O(n)
    """
    with borrowed_elements(data, esize) as elements:
        if low >= high:
            return
        logger.debug("bottom-up merge sort of range [%d, %d]", low, high)

        count = high - low + 1
        width = 1
        while width < count:
            for start in range(low, high + 1, 2 * width):
                mid = start + width - 1
                if mid >= high:
                    break
                end = min(start + 2 * width - 1, high)
                merge(elements, None, start, mid, end, compare, allocator=allocator, stats=stats)
            width *= 2
