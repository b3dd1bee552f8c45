"""
区间平移
对同一分区内的一段索引统一加上偏移量，为插入腾出空位或在删除后收拢空位
"""
import logging
from typing import Any, Dict, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.data.query import NodeQuery
from nested_tree.interfaces.idatastore import INodeStore, PersistOutcome
from ...exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


def partition_query(config: TreeConfig, tree_id: Optional[Any] = None) -> NodeQuery:
    """
    返回限定在某个分区内的空查询

    多棵树模式下未指定树ID时使用配置的默认树ID
    """
    if not config.multi_tree:
        return NodeQuery()
    if tree_id is None:
        tree_id = config.tree_value
    return NodeQuery(partition=(config.tree_field, tree_id))


class RangeShifter:
    """区间平移器"""

    def __init__(self, store: INodeStore, config: TreeConfig):
        self._store = store
        self._config = config

    def shift_from(self, tree_id: Optional[Any], threshold: int, delta: int) -> int:
        """
        从 threshold 开始平移

        left >= threshold 的节点左右索引都加 delta；
        区间跨过 threshold 的祖先节点只有右索引加 delta

        Returns:
            受影响的行数
        """
        if delta == 0:
            return 0

        left_field = self._config.left_field
        right_field = self._config.right_field

        # 正向平移先处理靠右的行，反向平移先处理靠左的行
        query = (partition_query(self._config, tree_id)
                 .where(right_field, '>=', threshold)
                 .ordered(left_field, descending=delta > 0))
        rows = self._store.fetch_many(query)

        for row in rows:
            if row[left_field] >= threshold:
                row[left_field] += delta
            row[right_field] += delta
            self._persist(row, "shift_from")

        logger.debug(f"shift_from tree={tree_id} threshold={threshold} delta={delta}: {len(rows)} 行")
        return len(rows)

    def shift_range(self, tree_id: Optional[Any], low: int, high: int, delta: int) -> int:
        """
        平移 [low, high] 范围内的整棵子树

        left >= low 且 right <= high 的节点左右索引都加 delta

        Returns:
            受影响的行数
        """
        if delta == 0:
            return 0

        left_field = self._config.left_field
        right_field = self._config.right_field

        query = (partition_query(self._config, tree_id)
                 .where(left_field, '>=', low)
                 .where(right_field, '<=', high)
                 .ordered(left_field, descending=delta > 0))
        rows = self._store.fetch_many(query)

        for row in rows:
            row[left_field] += delta
            row[right_field] += delta
            self._persist(row, "shift_range")

        logger.debug(f"shift_range tree={tree_id} [{low}, {high}] delta={delta}: {len(rows)} 行")
        return len(rows)

    def _persist(self, row: Dict[str, Any], operation: str) -> None:
        if self._store.persist(row) is PersistOutcome.CONFLICT:
            raise PersistenceFailure(
                f"平移时左索引冲突: {row.get(self._config.left_field)}",
                operation=operation
            )
