"""
内存存储实现
数据保存在内存中，程序结束即消失
"""
import copy
from typing import Dict, List, Any, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.interfaces.idatastore import PersistOutcome
from .adapter import NodeStoreAdapter
from .exceptions import StorageOperationError
from ...exceptions import NodeNotFoundError


class MemoryStore(NodeStoreAdapter):
    """内存存储实现"""

    store_type = "memory"

    def __init__(self, tree_config: Optional[TreeConfig] = None):
        """
        初始化内存存储

        Args:
            tree_config: 节点类型的树配置
        """
        super().__init__(tree_config)

        # 内存数据结构
        self._rows: Dict[Any, Dict[str, Any]] = {}  # pk -> row
        self._next_id = 1

        # 索引: (tree_id, left) -> pk
        self._left_index: Dict[tuple, Any] = {}

        # 原子批次
        self._snapshot: Optional[tuple] = None
        self._depth = 0

    # ========== 查询 ==========

    def _select(self, query) -> List[Dict[str, Any]]:
        """按查询条件筛选并排序"""
        rows = [row for row in self._rows.values() if query.matches(row)]

        if query.order_by:
            rows.sort(key=lambda r: r.get(query.order_by), reverse=query.descending)

        if query.limit is not None:
            rows = rows[:query.limit]

        return rows

    def fetch_one(self, query) -> Optional[Dict[str, Any]]:
        """获取满足条件的第一行"""
        with self._lock:
            rows = self._select(query)
            return copy.deepcopy(rows[0]) if rows else None

    def fetch_many(self, query) -> List[Dict[str, Any]]:
        """获取满足条件的所有行"""
        with self._lock:
            return [copy.deepcopy(row) for row in self._select(query)]

    def count_matching(self, query) -> int:
        """统计满足条件的行数"""
        with self._lock:
            return sum(1 for row in self._rows.values() if query.matches(row))

    def max_value(self, field: str) -> Optional[int]:
        """获取某字段的最大值"""
        with self._lock:
            values = [row[field] for row in self._rows.values() if row.get(field) is not None]
            return max(values) if values else None

    # ========== 写入 ==========

    def persist(self, row: Dict[str, Any], create: bool = False) -> PersistOutcome:
        """
        保存一行

        新建时分配主键并写回 row；(树ID, 左索引) 冲突时返回 CONFLICT
        """
        pk_field = self.tree_config.pk_field

        with self._lock:
            if create:
                pk = row.get(pk_field)
                if pk is None:
                    pk = self._next_id
                elif pk in self._rows:
                    return PersistOutcome.CONFLICT
            else:
                pk = row.get(pk_field)
                if pk not in self._rows:
                    raise NodeNotFoundError(node_id=pk)

            key = self.unique_key(row)
            owner = self._left_index.get(key)
            if owner is not None and owner != pk:
                return PersistOutcome.CONFLICT

            # 更新索引
            if not create:
                old_key = self.unique_key(self._rows[pk])
                if self._left_index.get(old_key) == pk:
                    del self._left_index[old_key]

            stored = copy.deepcopy(row)
            stored[pk_field] = pk
            self._rows[pk] = stored
            self._left_index[key] = pk

            if create:
                row[pk_field] = pk
                if isinstance(pk, int):
                    self._next_id = max(self._next_id, pk + 1)

            return PersistOutcome.SAVED

    def delete_matching(self, query) -> int:
        """删除满足条件的所有行"""
        with self._lock:
            doomed = [pk for pk, row in self._rows.items() if query.matches(row)]
            for pk in doomed:
                row = self._rows.pop(pk)
                key = self.unique_key(row)
                if self._left_index.get(key) == pk:
                    del self._left_index[key]
            return len(doomed)

    # ========== 原子批次 ==========

    def begin(self) -> None:
        """开始原子批次（嵌套时只有最外层生效）"""
        with self._lock:
            if self._depth == 0:
                self._snapshot = (
                    copy.deepcopy(self._rows),
                    dict(self._left_index),
                    self._next_id
                )
            self._depth += 1

    def commit(self) -> None:
        """提交原子批次"""
        with self._lock:
            if self._depth == 0:
                return
            self._depth -= 1
            if self._depth == 0:
                try:
                    self._flush()
                except Exception:
                    # 落盘失败则恢复批次开始前的状态
                    self._rows, self._left_index, self._next_id = self._snapshot
                    raise
                finally:
                    self._snapshot = None

    def rollback(self) -> None:
        """回滚到最外层批次开始时的状态"""
        with self._lock:
            if self._depth == 0:
                return
            self._rows, self._left_index, self._next_id = self._snapshot
            self._snapshot = None
            self._depth = 0

    def _flush(self) -> None:
        """批次提交后的持久化钩子（内存存储无操作）"""
        pass

    def _check_writable(self, operation: str) -> None:
        """批次中途不允许整体替换数据"""
        if self._depth:
            raise StorageOperationError(
                "原子批次进行中",
                operation=operation,
                store_type=self.store_type
            )

    # ========== 维护 ==========

    def close(self):
        """关闭存储连接（内存存储无操作）"""
        pass

    def clear(self):
        """清空所有数据（测试用）"""
        with self._lock:
            self._check_writable("clear")
            self._rows.clear()
            self._left_index.clear()
            self._next_id = 1

    def __len__(self) -> int:
        return len(self._rows)

    def __str__(self):
        """字符串表示"""
        return (f"{self.__class__.__name__}(nodes={len(self._rows)}, "
                f"trees={len(self.list_partitions())})")
