from abc import ABC, abstractmethod
from typing import Any


class Algorithm(ABC):
    """所有排序算法的基类。

    子类必须实现:
        execute: 执行算法并返回结果
    """

    @abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """执行算法并返回结果。

        参数:
            *args: 位置参数，具体取决于算法实现
            **kwargs: 关键字参数，具体取决于算法实现

        返回:
            Any: 算法执行的结果
        """
        raise NotImplementedError
