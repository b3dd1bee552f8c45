"""
节点工厂 - 创建节点对象
"""
from typing import Dict, Any, Optional

from nested_tree.config.tree_config import TreeConfig
from ...exceptions import ValidationError
from .entity import TreeNode


class NodeFactory:
    """节点工厂，负责为某种节点类型创建节点"""

    def __init__(self, node_type: str, config: TreeConfig):
        """
        初始化节点工厂

        Args:
            node_type: 节点类型名称
            config: 节点类型的树配置
        """
        self._node_type = node_type
        self._config = config

    @property
    def node_type(self) -> str:
        return self._node_type

    def create(self, title: Optional[Any] = None, **data) -> TreeNode:
        """
        创建未保存的新节点

        Args:
            title: 标题（需配置 title_field）
            **data: 负载字段

        Returns:
            新节点，索引由插入操作分配
        """
        if title is not None:
            if not self._config.title_field:
                raise ValidationError(
                    message="未配置标题字段，不能设置标题",
                    field="title_field",
                    value=title,
                    reason="title_field_missing"
                )
            data[self._config.title_field] = title

        return TreeNode(self._node_type, self._config, data=data)

    def from_row(self, row: Dict[str, Any]) -> TreeNode:
        """从存储行创建节点"""
        node = TreeNode(self._node_type, self._config)
        node._apply_row(row)
        return node
