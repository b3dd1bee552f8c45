"""
节点接口定义
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class INestedNode(ABC):
    """嵌套集节点接口 - 能参与嵌套集运算的实体都实现此接口"""

    @property
    @abstractmethod
    def node_type(self) -> str:
        """节点类型名称（注册时的名字）"""
        pass

    @property
    @abstractmethod
    def node_id(self) -> Any:
        """主键，未保存时为None"""
        pass

    @property
    @abstractmethod
    def left(self) -> Optional[int]:
        """左索引"""
        pass

    @property
    @abstractmethod
    def right(self) -> Optional[int]:
        """右索引"""
        pass

    @property
    @abstractmethod
    def tree_id(self) -> Optional[int]:
        """所属树ID，单树存储为None"""
        pass

    @abstractmethod
    def is_new(self) -> bool:
        """是否尚未保存"""
        pass

    @abstractmethod
    def to_row(self) -> Dict[str, Any]:
        """转换为存储行数据"""
        pass
