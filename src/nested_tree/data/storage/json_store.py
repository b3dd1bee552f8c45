"""
JSON文件存储实现
所有行保存在单个JSON文件中，人类可读，轻量级
适用于小项目、原型开发
"""
from pathlib import Path
from typing import Any, Dict, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.interfaces.idatastore import PersistOutcome
from ..serializer import JSONSerializer
from .exceptions import StorageOperationError
from .memory_store import MemoryStore
from ...exceptions import StorageError, SerializationError


class JSONStore(MemoryStore):
    """JSON文件存储 - 内存中维护行数据，批次提交后整体写回文件"""

    store_type = "json"

    def __init__(self, file_path: str, tree_config: Optional[TreeConfig] = None,
                 serializer: Optional[JSONSerializer] = None):
        """
        初始化JSON存储

        Args:
            file_path: JSON文件路径
            tree_config: 节点类型的树配置
            serializer: 序列化器，默认为缩进2格的JSONSerializer
        """
        super().__init__(tree_config)
        self.file_path = Path(file_path)
        self.serializer = serializer or JSONSerializer(indent=2)
        self._ensure_file_exists()
        self._load_data()

    def _ensure_file_exists(self):
        """确保JSON文件存在"""
        if not self.file_path.exists() or self.file_path.stat().st_size == 0:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._flush()

    def _load_data(self):
        """加载JSON文件"""
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = self.serializer.loads(f.read())
        except SerializationError as e:
            raise StorageError(f"JSON文件损坏: {e}")
        except OSError as e:
            raise StorageError(f"读取JSON文件失败: {e}")

        pk_field = self.tree_config.pk_field
        with self._lock:
            self._rows = {}
            self._left_index = {}
            for row in data.get('rows', []):
                self._rows[row[pk_field]] = row
                self._left_index[self.unique_key(row)] = row[pk_field]
            self._next_id = data.get('next_id', 1)

    def _flush(self):
        """保存JSON文件"""
        data: Dict[str, Any] = {
            'config': self.tree_config.to_dict(),
            'next_id': self._next_id,
            'rows': sorted(
                self._rows.values(),
                key=lambda r: self.unique_key(r)
            ),
        }
        try:
            with open(self.file_path, 'w', encoding='utf-8') as f:
                f.write(self.serializer.dumps(data))
        except OSError as e:
            raise StorageOperationError(f"写入JSON文件失败: {e}", operation="flush",
                                        store_type=self.store_type)

    def persist(self, row: Dict[str, Any], create: bool = False) -> PersistOutcome:
        """保存一行；批次外的写入立即落盘"""
        with self._lock:
            outcome = super().persist(row, create)
            if outcome is PersistOutcome.SAVED and self._depth == 0:
                self._flush()
            return outcome

    def delete_matching(self, query) -> int:
        """删除满足条件的所有行；批次外的删除立即落盘"""
        with self._lock:
            count = super().delete_matching(query)
            if count and self._depth == 0:
                self._flush()
            return count

    def clear(self):
        """清空所有数据（测试用）"""
        with self._lock:
            super().clear()
            self._flush()

    def __str__(self):
        return f"JSONStore(file={self.file_path}, nodes={len(self._rows)})"
