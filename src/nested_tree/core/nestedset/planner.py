"""
树查询规划器
把导航请求（父节点、子节点、兄弟、树根、深度、子树）翻译成索引谓词查询
"""
from typing import Any, Callable, Dict, List, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.data.query import NodeQuery
from nested_tree.interfaces.idatastore import INodeStore
from nested_tree.interfaces.inode import INestedNode
from . import arithmetic
from .shifter import partition_query
from ...exceptions import InvalidOperandError

RowFactory = Callable[[Dict[str, Any]], INestedNode]


class TreeQueryPlanner:
    """
    树查询规划器

    *_query 方法只构造查询；同名的无后缀方法执行查询并把行转换为节点。
    关系不存在时返回None
    """

    def __init__(self, store: INodeStore, config: TreeConfig, row_factory: RowFactory):
        """
        Args:
            store: 节点存储
            config: 树配置
            row_factory: 把存储行转换为节点对象
        """
        self._store = store
        self._config = config
        self._row_factory = row_factory

    # ========== 查询构造 ==========

    def root_query(self, tree_id: Optional[Any] = None) -> NodeQuery:
        return partition_query(self._config, tree_id).where(self._config.left_field, '=', 1).first()

    def ancestors_query(self, node: INestedNode) -> NodeQuery:
        """祖先：left < node.left 且 right > node.right，按 left 升序"""
        config = self._config
        return (partition_query(config, node.tree_id)
                .where(config.left_field, '<', node.left)
                .where(config.right_field, '>', node.right)
                .ordered(config.left_field))

    def parent_query(self, node: INestedNode) -> NodeQuery:
        """父节点是右索引最小的祖先"""
        return self.ancestors_query(node).ordered(self._config.right_field).first()

    def first_child_query(self, node: INestedNode) -> NodeQuery:
        return self._scoped(node).where(self._config.left_field, '=', node.left + 1).first()

    def last_child_query(self, node: INestedNode) -> NodeQuery:
        return self._scoped(node).where(self._config.right_field, '=', node.right - 1).first()

    def previous_sibling_query(self, node: INestedNode) -> NodeQuery:
        return self._scoped(node).where(self._config.right_field, '=', node.left - 1).first()

    def next_sibling_query(self, node: INestedNode) -> NodeQuery:
        return self._scoped(node).where(self._config.left_field, '=', node.right + 1).first()

    def subtree_query(self, node: INestedNode, include_root: bool = True) -> NodeQuery:
        """子树：包含根时用闭区间，否则用开区间"""
        config = self._config
        if include_root:
            low, high = '>=', '<='
        else:
            low, high = '>', '<'
        return (self._scoped(node)
                .where(config.left_field, low, node.left)
                .where(config.right_field, high, node.right)
                .ordered(config.left_field))

    # ========== 导航 ==========

    def root(self, tree_id: Optional[Any] = None) -> Optional[INestedNode]:
        """获取树根（多棵树模式下未指定树ID时使用默认树ID）"""
        return self._one(self.root_query(tree_id))

    def parent(self, node: INestedNode) -> Optional[INestedNode]:
        self._require_valid(node, "get_parent")
        return self._one(self.parent_query(node))

    def first_child(self, node: INestedNode) -> Optional[INestedNode]:
        self._require_valid(node, "get_first_child")
        return self._one(self.first_child_query(node))

    def last_child(self, node: INestedNode) -> Optional[INestedNode]:
        self._require_valid(node, "get_last_child")
        return self._one(self.last_child_query(node))

    def previous_sibling(self, node: INestedNode) -> Optional[INestedNode]:
        self._require_valid(node, "get_previous_sibling")
        if arithmetic.is_root(node, self._config):
            return None
        return self._one(self.previous_sibling_query(node))

    def next_sibling(self, node: INestedNode) -> Optional[INestedNode]:
        self._require_valid(node, "get_next_sibling")
        if arithmetic.is_root(node, self._config):
            return None
        return self._one(self.next_sibling_query(node))

    def depth(self, node: INestedNode) -> int:
        """节点深度，即祖先数量（树根为0）"""
        self._require_valid(node, "depth")
        return self._store.count_matching(self.ancestors_query(node))

    def ancestors(self, node: INestedNode) -> List[INestedNode]:
        """从树根开始的祖先列表"""
        self._require_valid(node, "ancestors")
        return [self._row_factory(row) for row in self._store.fetch_many(self.ancestors_query(node))]

    def subtree_rows(self, node: INestedNode, include_root: bool = True) -> List[Dict[str, Any]]:
        """按先序返回子树的存储行"""
        self._require_valid(node, "subtree")
        return self._store.fetch_many(self.subtree_query(node, include_root))

    def children(self, node: INestedNode) -> List[INestedNode]:
        """沿第一个子节点和下一个兄弟遍历直接子节点"""
        result = []
        child = self.first_child(node)
        while child is not None:
            result.append(child)
            child = self.next_sibling(child)
        return result

    # ========== 内部方法 ==========

    def _scoped(self, node: INestedNode) -> NodeQuery:
        return partition_query(self._config, node.tree_id)

    def _one(self, query: NodeQuery) -> Optional[INestedNode]:
        row = self._store.fetch_one(query)
        return self._row_factory(row) if row is not None else None

    def _require_valid(self, node: INestedNode, operation: str) -> None:
        if not arithmetic.is_valid(node, self._config):
            raise InvalidOperandError(
                "节点无效（未保存或索引缺失）",
                operation=operation,
                node_id=getattr(node, 'node_id', None),
                reason="invalid_node"
            )
