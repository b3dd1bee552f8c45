"""
子树移动器
负责所有结构变更：子树移动、新节点插入、新建树根、删除子树和删除整棵树

所有变更都假定在调用方开启的原子批次内执行
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.data.query import NodeQuery
from nested_tree.interfaces.idatastore import INodeStore, PersistOutcome
from nested_tree.interfaces.inode import INestedNode
from . import arithmetic
from .shifter import RangeShifter, partition_query
from ...exceptions import InvalidOperandError, NodeNotFoundError, PersistenceFailure

logger = logging.getLogger(__name__)


class Placement(Enum):
    """相对目标节点的放置位置"""
    FIRST_CHILD = "first_child"
    LAST_CHILD = "last_child"
    PREVIOUS_SIBLING = "previous_sibling"
    NEXT_SIBLING = "next_sibling"

    @property
    def is_sibling(self) -> bool:
        return self in (Placement.PREVIOUS_SIBLING, Placement.NEXT_SIBLING)


def destination_for(to: INestedNode, placement: Placement) -> int:
    """放置位置对应的目标索引（新子树将从该索引开始）"""
    if placement is Placement.NEXT_SIBLING:
        return to.right + 1
    if placement is Placement.PREVIOUS_SIBLING:
        return to.left
    if placement is Placement.FIRST_CHILD:
        return to.left + 1
    return to.right


@dataclass
class RootInsertResult:
    """新建树根的结果"""
    success: bool
    tree_id: Optional[Any] = None
    attempts: int = 0
    node_id: Any = None


class SubtreeMover:
    """子树移动器"""

    def __init__(self, store: INodeStore, config: TreeConfig,
                 shifter: Optional[RangeShifter] = None, retry_limit: int = 5):
        """
        Args:
            store: 节点存储
            config: 树配置
            shifter: 区间平移器
            retry_limit: 新建树根时树ID冲突的最大尝试次数
        """
        self._store = store
        self._config = config
        self._shifter = shifter or RangeShifter(store, config)
        self._retry_limit = retry_limit

    # ========== 移动 ==========

    def move(self, node: INestedNode, to: INestedNode, placement: Placement) -> None:
        """把 node 及其子树移动到 to 的指定位置"""
        operation = f"make_{placement.value}_of"
        self._reload(node)
        self._reload(to)
        self._require_valid(node, operation)
        self._require_valid(to, operation)
        arithmetic.require_same_partition(node, to, self._config, operation)

        if arithmetic.is_root(node, self._config):
            raise InvalidOperandError("不能移动树根", operation=operation,
                                      node_id=node.node_id, reason="root_move")
        if arithmetic.contains(node, to):
            raise InvalidOperandError("目标节点位于被移动的子树内", operation=operation,
                                      node_id=node.node_id, reason="target_inside_subtree")
        if placement.is_sibling and arithmetic.is_root(to, self._config):
            raise InvalidOperandError("树根不能有兄弟节点", operation=operation,
                                      node_id=to.node_id, reason="root_sibling")

        self.move_subtree(node, destination_for(to, placement))
        self.refresh(to)

    def move_subtree(self, node: INestedNode, destination: int) -> None:
        """
        把 node 的子树移动到 destination 处

        依次执行：在目标处开出空位、把子树平移进空位、收拢原位置留下的空位
        """
        tree_id = node.tree_id
        size = arithmetic.interval_size(node)
        origin_left, origin_right = node.left, node.right

        self._shifter.shift_from(tree_id, destination, size)
        if origin_left >= destination:
            origin_left += size
            origin_right += size

        self._shifter.shift_range(tree_id, origin_left, origin_right, destination - origin_left)
        self._shifter.shift_from(tree_id, origin_right + 1, -size)

        self.refresh(node)
        logger.debug(f"子树已移动: {node.node_id} -> {destination}")

    # ========== 插入 ==========

    def insert_at(self, new_node, to: INestedNode, placement: Placement) -> None:
        """在 to 的指定位置插入一个未保存的新节点"""
        operation = f"insert_as_{placement.value}_of"
        if not new_node.is_new():
            raise InvalidOperandError("只能插入未保存的节点", operation=operation,
                                      node_id=new_node.node_id, reason="already_saved")
        self._reload(to)
        self._require_valid(to, operation)
        if placement.is_sibling and arithmetic.is_root(to, self._config):
            raise InvalidOperandError("树根不能有兄弟节点", operation=operation,
                                      node_id=to.node_id, reason="root_sibling")

        destination = destination_for(to, placement)
        self._shifter.shift_from(to.tree_id, destination, 2)

        row = new_node.to_row()
        row[self._config.left_field] = destination
        row[self._config.right_field] = destination + 1
        if self._config.multi_tree:
            row[self._config.tree_field] = to.tree_id

        if self._store.persist(row, create=True) is PersistOutcome.CONFLICT:
            raise PersistenceFailure(f"插入位置冲突: {destination}", operation=operation)

        new_node._apply_row(row)
        self.refresh(to)

    def new_root(self, node) -> RootInsertResult:
        """
        把未保存的节点保存为新树根 (1, 2)

        单棵树模式下存储必须为空；多棵树模式下分配 max(树ID)+1，
        冲突时依次尝试下一个ID，最多尝试 retry_limit 次
        """
        if not node.is_new():
            raise InvalidOperandError("只能用未保存的节点创建树根", operation="new_root",
                                      node_id=node.node_id, reason="already_saved")

        config = self._config
        row = node.to_row()
        row[config.left_field] = 1
        row[config.right_field] = 2

        if not config.multi_tree:
            if self._store.count_matching(NodeQuery()) > 0:
                raise InvalidOperandError("单棵树模式下树根已存在", operation="new_root",
                                          reason="root_exists")
            if self._store.persist(row, create=True) is PersistOutcome.CONFLICT:
                return RootInsertResult(success=False, attempts=1)
            node._apply_row(row)
            return RootInsertResult(success=True, attempts=1, node_id=node.node_id)

        tree_id = (self._store.max_value(config.tree_field) or 0) + 1
        for attempt in range(1, self._retry_limit + 1):
            candidate = dict(row)
            candidate[config.tree_field] = tree_id
            if self._store.persist(candidate, create=True) is PersistOutcome.SAVED:
                node._apply_row(candidate)
                return RootInsertResult(success=True, tree_id=tree_id,
                                        attempts=attempt, node_id=node.node_id)
            logger.warning(f"树ID冲突: {tree_id} (第{attempt}次尝试)")
            tree_id += 1

        return RootInsertResult(success=False, attempts=self._retry_limit)

    # ========== 删除 ==========

    def delete(self, node: INestedNode) -> int:
        """
        删除节点及其全部后代，并收拢留下的空位

        Returns:
            删除的行数
        """
        self._reload(node)
        self._require_valid(node, "delete")
        config = self._config
        tree_id, left, right = node.tree_id, node.left, node.right

        query = (partition_query(config, tree_id)
                 .where(config.left_field, '>=', left)
                 .where(config.right_field, '<=', right))
        deleted = self._store.delete_matching(query)
        self._shifter.shift_from(tree_id, right + 1, -(right - left + 1))

        node._mark_deleted()
        return deleted

    def delete_tree(self, tree_id: Optional[Any] = None, all_trees: bool = False) -> int:
        """删除一棵树（多棵树模式下按树ID），或删除存储中的全部树"""
        config = self._config
        if all_trees or not config.multi_tree:
            return self._store.delete_matching(NodeQuery())

        if tree_id is None and config.tree_value is None:
            raise InvalidOperandError("未指定要删除的树", operation="delete_tree",
                                      reason="missing_tree_id")
        return self._store.delete_matching(partition_query(config, tree_id))

    # ========== 保存负载 ==========

    def save(self, node) -> None:
        """保存节点的负载字段，树结构字段以存储中的当前值为准"""
        stored = self._fetch_row(node)
        row = node.to_row()
        for name in self._config.index_fields:
            row[name] = stored.get(name)
        self._store.persist(row)
        node._apply_row(row)

    # ========== 工具 ==========

    def refresh(self, node) -> None:
        """从存储重新读取节点的索引和数据"""
        node._apply_row(self._fetch_row(node))

    def _reload(self, node) -> None:
        """变更前用存储中的索引替换调用方持有的旧值；未保存的节点保持原样"""
        if not node.is_new():
            self.refresh(node)

    def _fetch_row(self, node):
        query = NodeQuery().where(self._config.pk_field, '=', node.node_id).first()
        row = self._store.fetch_one(query)
        if row is None:
            raise NodeNotFoundError(node_id=node.node_id, tree_id=node.tree_id)
        return row

    def _require_valid(self, node: INestedNode, operation: str) -> None:
        if not arithmetic.is_valid(node, self._config):
            raise InvalidOperandError(
                "节点无效（未保存或索引缺失）",
                operation=operation,
                node_id=getattr(node, 'node_id', None),
                reason="invalid_node"
            )
