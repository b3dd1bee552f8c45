"""
节点仓库模块
一种节点类型的全部树操作入口：变更、导航、关系判断和导出
"""
import logging
from contextlib import contextmanager
from typing import Optional, Dict, Any, List, Iterable, Iterator

from nested_tree.config.tree_config import TreeConfig
from nested_tree.data.query import NodeQuery
from nested_tree.data.storage.adapter import NodeStoreAdapter
from nested_tree.interfaces.inode import INestedNode
from .entity import TreeNode
from .factory import NodeFactory
from ..nestedset import arithmetic
from ..nestedset.dumper import SubtreeDumper
from ..nestedset.mover import Placement, SubtreeMover
from ..nestedset.planner import TreeQueryPlanner
from ..nestedset.shifter import RangeShifter, partition_query
from ...exceptions import (
    DataStoreError, InvalidOperandError, NodeNotFoundError,
    PersistenceFailure, TreeNotFoundError
)

logger = logging.getLogger(__name__)


class NodeRepository:
    """节点仓库，管理一种节点类型的树"""

    def __init__(self, node_type: str, config: TreeConfig,
                 store: NodeStoreAdapter, retry_limit: int = 5):
        """
        初始化节点仓库

        Args:
            node_type: 节点类型名称
            config: 已验证的树配置
            store: 该节点类型的存储
            retry_limit: 新建树根时树ID冲突的最大尝试次数
        """
        self._node_type = node_type
        self._config = config
        self._store = store

        self._factory = NodeFactory(node_type, config)
        self._shifter = RangeShifter(store, config)
        self._mover = SubtreeMover(store, config, self._shifter, retry_limit)
        self._planner = TreeQueryPlanner(store, config, self._factory.from_row)
        self._dumper = SubtreeDumper(config)

    @property
    def node_type(self) -> str:
        return self._node_type

    @property
    def config(self) -> TreeConfig:
        return self._config

    @property
    def store(self) -> NodeStoreAdapter:
        return self._store

    @property
    def planner(self) -> TreeQueryPlanner:
        return self._planner

    # ========== 创建与读取 ==========

    def create(self, title: Optional[Any] = None, **data) -> TreeNode:
        """创建未保存的节点"""
        return self._factory.create(title, **data)

    def get(self, node_id: Any) -> TreeNode:
        """按主键获取节点"""
        row = self._store.fetch_one(NodeQuery().where(self._config.pk_field, '=', node_id).first())
        if row is None:
            raise NodeNotFoundError(node_id=node_id)
        return self._factory.from_row(row)

    def refresh(self, node: TreeNode) -> TreeNode:
        """从存储重新读取节点（其他节点变更后索引可能已过期）"""
        self._check_type(node, "refresh")
        self._mover.refresh(node)
        return node

    def save(self, node: TreeNode) -> TreeNode:
        """保存已存在节点的负载字段（树结构字段不变）"""
        self._check_type(node, "save")
        if not arithmetic.is_valid(node, self._config):
            raise InvalidOperandError("只能保存已在树中的节点，新节点请使用插入操作",
                                      operation="save", node_id=node.node_id, reason="invalid_node")
        with self._mutation("save"):
            self._mover.save(node)
        return node

    # ========== 变更 ==========

    def new_root(self, node: TreeNode) -> TreeNode:
        """
        把未保存的节点保存为新树的根

        Raises:
            InvalidOperandError: 节点已保存，或单棵树模式下已有树根
            PersistenceFailure: 树ID冲突重试次数耗尽
        """
        self._check_type(node, "new_root")
        with self._mutation("new_root"):
            result = self._mover.new_root(node)
        if not result.success:
            logger.error(f"新建树根失败: {self._node_type}, 尝试{result.attempts}次")
            raise PersistenceFailure("树ID冲突，重试次数已耗尽",
                                     operation="new_root", attempts=result.attempts)
        logger.info(f"新建树根: {node!r}")
        return node

    def insert_as_first_child_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._insert(node, to, Placement.FIRST_CHILD)

    def insert_as_last_child_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._insert(node, to, Placement.LAST_CHILD)

    def insert_as_previous_sibling_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._insert(node, to, Placement.PREVIOUS_SIBLING)

    def insert_as_next_sibling_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._insert(node, to, Placement.NEXT_SIBLING)

    def make_next_sibling_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._move(node, to, Placement.NEXT_SIBLING)

    def make_previous_sibling_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._move(node, to, Placement.PREVIOUS_SIBLING)

    def make_first_child_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._move(node, to, Placement.FIRST_CHILD)

    def make_last_child_of(self, node: TreeNode, to: TreeNode) -> TreeNode:
        return self._move(node, to, Placement.LAST_CHILD)

    def delete(self, node: TreeNode) -> int:
        """
        删除节点及其全部后代

        Returns:
            删除的行数
        """
        self._check_type(node, "delete")
        description = repr(node)
        with self._mutation("delete"):
            deleted = self._mover.delete(node)
        logger.info(f"删除子树: {description}, 共{deleted}个节点")
        return deleted

    def delete_tree(self, tree_id: Optional[Any] = None, all_trees: bool = False) -> int:
        """删除一棵树或全部树"""
        with self._mutation("delete_tree"):
            deleted = self._mover.delete_tree(tree_id, all_trees)
        logger.info(f"删除树: {self._node_type} tree={'ALL' if all_trees else tree_id}, 共{deleted}个节点")
        return deleted

    # ========== 导航 ==========

    def get_root(self, tree_id: Optional[Any] = None) -> Optional[TreeNode]:
        return self._planner.root(tree_id)

    def require_root(self, tree_id: Optional[Any] = None) -> TreeNode:
        """获取树根，不存在时抛出 TreeNotFoundError"""
        root = self.get_root(tree_id)
        if root is None:
            raise TreeNotFoundError(tree_id if tree_id is not None else self._config.tree_value)
        return root

    def get_parent(self, node: TreeNode) -> Optional[TreeNode]:
        self._check_type(node, "get_parent")
        return self._planner.parent(node)

    def get_first_child(self, node: TreeNode) -> Optional[TreeNode]:
        self._check_type(node, "get_first_child")
        return self._planner.first_child(node)

    def get_last_child(self, node: TreeNode) -> Optional[TreeNode]:
        self._check_type(node, "get_last_child")
        return self._planner.last_child(node)

    def get_previous_sibling(self, node: TreeNode) -> Optional[TreeNode]:
        self._check_type(node, "get_previous_sibling")
        return self._planner.previous_sibling(node)

    def get_next_sibling(self, node: TreeNode) -> Optional[TreeNode]:
        self._check_type(node, "get_next_sibling")
        return self._planner.next_sibling(node)

    def get_children(self, node: TreeNode) -> List[TreeNode]:
        self._check_type(node, "get_children")
        return self._planner.children(node)

    def depth(self, node: TreeNode) -> int:
        self._check_type(node, "depth")
        return self._planner.depth(node)

    def ancestors(self, node: TreeNode) -> List[TreeNode]:
        self._check_type(node, "ancestors")
        return self._planner.ancestors(node)

    def child_count(self, node: TreeNode) -> int:
        """区间内的节点数（全部后代）"""
        return arithmetic.child_count(node, self._config)

    def count_direct_children(self, node: TreeNode) -> int:
        """直接子节点数"""
        return len(self.get_children(node))

    def dump(self, node: TreeNode, include_root: bool = True,
             attributes: Optional[Iterable[str]] = None) -> Iterator[Dict[str, Any]]:
        """导出子树为带标注的行序列"""
        self._check_type(node, "dump")
        rows = self._planner.subtree_rows(node, include_root)
        return self._dumper.dump(node, rows, include_root, attributes)

    # ========== 关系判断 ==========

    def is_valid(self, node: INestedNode) -> bool:
        return self._is_own(node) and arithmetic.is_valid(node, self._config)

    def is_root(self, node: INestedNode) -> bool:
        return self._is_own(node) and arithmetic.is_root(node, self._config)

    def is_leaf(self, node: INestedNode) -> bool:
        return self._is_own(node) and arithmetic.is_leaf(node, self._config)

    def is_child(self, node: INestedNode) -> bool:
        return self._is_own(node) and arithmetic.is_child(node, self._config)

    def is_child_of(self, node: INestedNode, ancestor: INestedNode) -> bool:
        self._check_type(node, "is_child_of")
        self._check_type(ancestor, "is_child_of")
        return arithmetic.is_child_of(node, ancestor, self._config)

    def is_parent_of(self, node: INestedNode, descendant: INestedNode) -> bool:
        self._check_type(node, "is_parent_of")
        self._check_type(descendant, "is_parent_of")
        return arithmetic.is_parent_of(node, descendant, self._config)

    def has_parent(self, node: TreeNode) -> bool:
        return self.is_child(node)

    def has_children(self, node: TreeNode) -> bool:
        return self.is_valid(node) and not arithmetic.is_leaf(node, self._config)

    def has_previous_sibling(self, node: TreeNode) -> bool:
        return self.is_valid(node) and self._planner.previous_sibling(node) is not None

    def has_next_sibling(self, node: TreeNode) -> bool:
        return self.is_valid(node) and self._planner.next_sibling(node) is not None

    # ========== 统计 ==========

    def list_trees(self) -> List[Any]:
        """列出所有树ID"""
        return self._store.list_partitions()

    def count_nodes(self, tree_id: Optional[Any] = None) -> int:
        """统计一棵树的节点数"""
        return self._store.count_matching(partition_query(self._config, tree_id))

    def get_stats(self) -> Dict[str, Any]:
        stats = self._store.get_stats()
        stats['node_type'] = self._node_type
        return stats

    # ========== 内部方法 ==========

    def _insert(self, node: TreeNode, to: TreeNode, placement: Placement) -> TreeNode:
        operation = f"insert_as_{placement.value}_of"
        self._check_type(node, operation)
        self._check_type(to, operation)
        with self._mutation(operation):
            self._mover.insert_at(node, to, placement)
        logger.info(f"插入节点: {node!r} ({placement.value} of {to.node_id})")
        return node

    def _move(self, node: TreeNode, to: TreeNode, placement: Placement) -> TreeNode:
        operation = f"make_{placement.value}_of"
        self._check_type(node, operation)
        self._check_type(to, operation)
        with self._mutation(operation):
            self._mover.move(node, to, placement)
        logger.info(f"移动节点: {node!r} ({placement.value} of {to.node_id})")
        return node

    @contextmanager
    def _mutation(self, operation: str) -> Iterator[None]:
        """在原子批次中执行变更，存储错误转换为 PersistenceFailure"""
        try:
            with self._store.atomic():
                yield
        except DataStoreError as e:
            logger.error(f"{operation} 失败，已回滚: {e}")
            raise PersistenceFailure(str(e), operation=operation) from e

    def _is_own(self, node: Any) -> bool:
        return isinstance(node, INestedNode) and node.node_type == self._node_type

    def _check_type(self, node: Any, operation: str) -> None:
        if not self._is_own(node):
            raise InvalidOperandError(
                f"节点类型不符: 需要 {self._node_type}",
                operation=operation,
                node_id=getattr(node, 'node_id', None),
                reason="wrong_node_type"
            )

    def __repr__(self) -> str:
        return f"NodeRepository({self._node_type}, store={self._store.store_type})"
