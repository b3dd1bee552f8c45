"""
数据存储接口
嵌套集引擎对外部存储的全部要求
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from .iquery import IQuery


class PersistOutcome(Enum):
    """保存结果"""
    SAVED = "saved"
    CONFLICT = "conflict"  # 唯一约束冲突（新建根节点时树ID已被占用）


class INodeStore(ABC):
    """节点存储接口 - 抽象数据持久化层"""

    @abstractmethod
    def fetch_one(self, query: IQuery) -> Optional[Dict[str, Any]]:
        """
        获取满足条件的第一行

        Args:
            query: 节点查询

        Returns:
            行数据，不存在返回None
        """
        pass

    @abstractmethod
    def fetch_many(self, query: IQuery) -> List[Dict[str, Any]]:
        """
        获取满足条件的所有行，按查询要求排序

        Args:
            query: 节点查询

        Returns:
            行数据列表
        """
        pass

    @abstractmethod
    def persist(self, row: Dict[str, Any], create: bool = False) -> PersistOutcome:
        """
        保存一行

        Args:
            row: 行数据
            create: 是否为新建（新建时分配主键）

        Returns:
            保存结果；唯一约束冲突返回 CONFLICT，其他失败抛出异常
        """
        pass

    @abstractmethod
    def count_matching(self, query: IQuery) -> int:
        """
        统计满足条件的行数

        Args:
            query: 节点查询

        Returns:
            行数
        """
        pass

    @abstractmethod
    def delete_matching(self, query: IQuery) -> int:
        """
        删除满足条件的所有行

        Args:
            query: 节点查询

        Returns:
            删除的行数
        """
        pass

    @abstractmethod
    def max_value(self, field: str) -> Optional[int]:
        """
        获取某字段的最大值

        Args:
            field: 字段名

        Returns:
            最大值，空表返回None
        """
        pass

    @abstractmethod
    def begin(self) -> None:
        """开始原子批次"""
        pass

    @abstractmethod
    def commit(self) -> None:
        """提交原子批次"""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """回滚原子批次"""
        pass
