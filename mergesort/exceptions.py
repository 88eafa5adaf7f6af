"""归并排序库的异常定义。

本模块定义了排序过程中唯一会被算法本身抛出的错误类型
(临时缓冲区分配失败)，以及统一的异常日志工具。

传播策略:
    - 分配失败不会在本地恢复，整个递归调用链会立即展开
    - 失败时缓冲区可能已被部分重排，调用方需自行处理
"""

from __future__ import annotations

import logging
from typing import Optional


class SortError(Exception):
    """排序库所有自定义异常的基类。"""


class AllocationFailure(SortError, MemoryError):
    """合并步骤无法获得临时缓冲区时抛出。

    属性:
        requested: 请求的元素个数
        low: 正在合并的区间起点
        high: 正在合并的区间终点
    """

    def __init__(
        self,
        requested: int,
        low: Optional[int] = None,
        high: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        if message is None:
            message = f"无法分配 {requested} 个元素的临时缓冲区"
            if low is not None and high is not None:
                message += f" (区间 [{low}, {high}])"
        super().__init__(message)
        self.requested = requested
        self.low = low
        self.high = high


def log_and_format_exception(
    exc: Exception, logger: Optional[logging.Logger] = None
) -> dict[str, str]:
    """记录异常日志并返回标准化的错误表示。

    参数:
        exc: 要处理的异常对象
        logger: 可选的日志记录器，如果未提供则使用本模块的记录器

    返回:
        dict[str, str]: 包含 error_type 和 message 的字典
    """
    log = logger or logging.getLogger(__name__)
    log.exception("%s: %s", type(exc).__name__, exc)
    return {
        "error_type": type(exc).__name__,
        "message": str(exc),
    }
