"""
存储适配器
定义统一的节点行存储操作接口
"""
import threading
from abc import abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.interfaces.idatastore import INodeStore
from ..query import NodeQuery


class NodeStoreAdapter(INodeStore):
    """
    节点存储适配器抽象基类

    行数据是以配置字段名为键的字典；每个适配器实例只服务一种节点类型
    """

    store_type = "abstract"

    def __init__(self, tree_config: Optional[TreeConfig] = None):
        self.tree_config = tree_config or TreeConfig()
        self._lock = threading.RLock()  # 线程安全锁

    @contextmanager
    def atomic(self) -> Iterator['NodeStoreAdapter']:
        """
        原子批次上下文

        批次内的所有写入要么全部提交，要么全部回滚；
        批次期间持有存储锁，同一存储上的变更被串行化
        """
        with self._lock:
            self.begin()
            try:
                yield self
            except BaseException:
                self.rollback()
                raise
            else:
                self.commit()

    def unique_key(self, row: Dict[str, Any]) -> tuple:
        """同一分区内左索引唯一"""
        config = self.tree_config
        tree_value = row.get(config.tree_field) if config.multi_tree else None
        return tree_value, row.get(config.left_field)

    def list_partitions(self) -> List[Any]:
        """列出所有树ID（单树存储返回[None]或空列表）"""
        config = self.tree_config
        roots = self.fetch_many(
            NodeQuery().where(config.left_field, '=', 1).ordered(config.tree_field or config.pk_field)
        )
        if config.multi_tree:
            return [row.get(config.tree_field) for row in roots]
        return [None] if roots else []

    def get_stats(self) -> Dict[str, Any]:
        """获取存储统计信息"""
        return {
            'store_type': self.store_type,
            'node_count': self.count_matching(NodeQuery()),
            'tree_count': len(self.list_partitions()),
        }

    @abstractmethod
    def close(self):
        """关闭存储连接"""
        pass

    @abstractmethod
    def clear(self):
        """清空所有数据（测试用）"""
        pass


class StorageContext:
    """存储上下文管理器"""

    def __init__(self, adapter: NodeStoreAdapter):
        self.adapter = adapter

    def __enter__(self):
        return self.adapter

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.adapter.close()
