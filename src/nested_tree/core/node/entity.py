"""
树节点实体模块
一个节点对应存储中的一行
"""

from typing import Optional, Dict, Any

from nested_tree.config.tree_config import TreeConfig
from nested_tree.interfaces.inode import INestedNode
from ...exceptions import InvalidOperandError


class TreeNode(INestedNode):
    """
    树节点 - 嵌套集中的一行

    每个节点包含：
    1. 身份信息：node_type, node_id
    2. 嵌套集索引：left, right, tree_id（只读，只能由引擎修改）
    3. 负载数据：任意业务字段，标题字段也在其中
    """

    def __init__(
        self,
        node_type: str,
        config: TreeConfig,
        data: Optional[Dict[str, Any]] = None,
        node_id: Any = None,
        left: Optional[int] = None,
        right: Optional[int] = None,
        tree_id: Optional[int] = None
    ):
        """
        初始化树节点

        Args:
            node_type: 节点类型名称
            config: 节点类型的树配置
            data: 负载数据
            node_id: 主键，未保存的节点为None
            left: 左索引
            right: 右索引
            tree_id: 所属树ID
        """
        self._node_type = node_type
        self._config = config
        self._node_id = node_id
        self._left = left
        self._right = right
        self._tree_id = tree_id
        self._data: Dict[str, Any] = {}

        for key, value in (data or {}).items():
            self._check_writable(key)
            self._data[key] = value

    # ========== 身份与索引 ==========

    @property
    def node_type(self) -> str:
        return self._node_type

    @property
    def config(self) -> TreeConfig:
        return self._config

    @property
    def node_id(self) -> Any:
        return self._node_id

    @property
    def left(self) -> Optional[int]:
        return self._left

    @property
    def right(self) -> Optional[int]:
        return self._right

    @property
    def tree_id(self) -> Optional[int]:
        return self._tree_id

    @property
    def title(self) -> Optional[Any]:
        """标题字段的值（未配置标题字段时为None）"""
        if not self._config.title_field:
            return None
        return self._data.get(self._config.title_field)

    def is_new(self) -> bool:
        """是否尚未保存"""
        return self._node_id is None

    # ========== 负载数据 ==========

    @property
    def data(self) -> Dict[str, Any]:
        """负载数据副本"""
        return dict(self._data)

    def get(self, name: str, default: Any = None) -> Any:
        """读取字段"""
        if name == self._config.pk_field:
            return self._node_id
        if name == self._config.left_field:
            return self._left
        if name == self._config.right_field:
            return self._right
        if self._config.tree_field and name == self._config.tree_field:
            return self._tree_id
        return self._data.get(name, default)

    def set(self, name: str, value: Any) -> 'TreeNode':
        """
        设置负载字段

        Raises:
            InvalidOperandError: 试图设置主键或树结构字段
        """
        self._check_writable(name)
        self._data[name] = value
        return self

    def __getitem__(self, name: str) -> Any:
        if name not in self._data and name not in self._config.index_fields:
            raise KeyError(name)
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def _check_writable(self, name: str) -> None:
        if name in self._config.readonly_fields or name == self._config.pk_field:
            raise InvalidOperandError(
                f"字段只读: {name}",
                operation="set",
                node_id=self._node_id,
                reason="readonly_field"
            )

    # ========== 引擎内部使用 ==========

    def _apply_row(self, row: Dict[str, Any]) -> None:
        """用存储行刷新节点（仅供引擎调用）"""
        config = self._config
        self._node_id = row.get(config.pk_field)
        self._left = row.get(config.left_field)
        self._right = row.get(config.right_field)
        if config.tree_field:
            self._tree_id = row.get(config.tree_field)
        self._data = {
            key: value for key, value in row.items()
            if key not in (config.pk_field, config.left_field, config.right_field, config.tree_field)
        }

    def _mark_deleted(self) -> None:
        """删除后清空主键和索引"""
        self._node_id = None
        self._left = None
        self._right = None

    # ========== 序列化 ==========

    def to_row(self) -> Dict[str, Any]:
        """转换为存储行数据"""
        config = self._config
        row = dict(self._data)
        row[config.pk_field] = self._node_id
        row[config.left_field] = self._left
        row[config.right_field] = self._right
        if config.tree_field:
            row[config.tree_field] = self._tree_id
        return row

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（包含节点类型）"""
        result = self.to_row()
        result['_type_'] = self._node_type
        return result

    def same_row(self, other: 'TreeNode') -> bool:
        """是否指向存储中的同一行"""
        return (isinstance(other, TreeNode) and not self.is_new()
                and (self._node_type, self._node_id) == (other._node_type, other._node_id))

    def __repr__(self) -> str:
        title = f" {self.title!r}" if self.title is not None else ""
        tree = f" tree={self._tree_id}" if self._config.tree_field else ""
        return (f"TreeNode({self._node_type}#{self._node_id}{title} "
                f"[{self._left}, {self._right}]{tree})")
