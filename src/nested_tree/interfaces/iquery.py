"""
查询接口定义
"""
from abc import ABC, abstractmethod
from typing import Any, Dict


class IQuery(ABC):
    """查询接口 - 定义查询行为"""

    @abstractmethod
    def matches(self, row: Dict[str, Any]) -> bool:
        """
        判断一行数据是否满足查询条件

        Args:
            row: 行数据

        Returns:
            是否满足
        """
        pass

    @abstractmethod
    def validate(self) -> bool:
        """
        验证查询是否有效

        Returns:
            是否有效
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """返回可读的查询描述"""
        pass
