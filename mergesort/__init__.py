"""Comparator-driven merge sort over contiguous sequences and fixed-width records."""

from .bottom_up import bottom_up_sort
from .comparators import chain, from_key, natural_order, reverse_order
from .config import SortConfig, load_config
from .exceptions import AllocationFailure, SortError
from .manager import SortManager, get_sort_manager
from .memory import AllocationStats, FailingAllocator, default_allocator
from .merge_sort import MergeSort, MergeStats, merge, mgsort, sort
from .records import RecordBuffer, dtype_comparator, struct_comparator

__all__ = [
    "AllocationFailure",
    "AllocationStats",
    "FailingAllocator",
    "MergeSort",
    "MergeStats",
    "RecordBuffer",
    "SortConfig",
    "SortError",
    "SortManager",
    "bottom_up_sort",
    "chain",
    "default_allocator",
    "dtype_comparator",
    "from_key",
    "get_sort_manager",
    "load_config",
    "merge",
    "mgsort",
    "natural_order",
    "reverse_order",
    "sort",
    "struct_comparator",
]
