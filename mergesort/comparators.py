"""三路比较函数的辅助工具。

比较函数接收两个元素，返回负数、零或正数，
分别表示第一个元素小于、等于或大于第二个元素。
"""
from typing import Any, Callable

Comparator = Callable[[Any, Any], int]


def natural_order(a: Any, b: Any) -> int:
    """按元素自身的 ``<`` 关系进行三路比较。

    只使用 ``<``，因此对只定义了 ``__lt__`` 的类型以及 numpy 标量同样适用。

    示例:
        >>> natural_order(1, 2)
        -1
        >>> natural_order("b", "a")
        1
    """
    if a < b:
        return -1
    if b < a:
        return 1
    return 0


def reverse_order(compare: Comparator = natural_order) -> Comparator:
    """返回与 ``compare`` 顺序相反的比较函数。"""

    def _reversed(a: Any, b: Any) -> int:
        return compare(b, a)

    return _reversed


def from_key(key: Callable[[Any], Any]) -> Comparator:
    """根据键函数构造比较函数，语义与 ``sorted(key=...)`` 相同。"""

    def _by_key(a: Any, b: Any) -> int:
        return natural_order(key(a), key(b))

    return _by_key


def chain(*comparators: Comparator) -> Comparator:
    """依次使用多个比较函数，前一个判定相等时才使用下一个。"""
    if not comparators:
        raise ValueError("chain() 至少需要一个比较函数")

    def _chained(a: Any, b: Any) -> int:
        for compare in comparators:
            result = compare(a, b)
            if result:
                return result
        return 0

    return _chained
