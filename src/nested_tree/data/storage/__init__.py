"""
存储模块
提供多种节点行存储后端
"""

from .adapter import NodeStoreAdapter, StorageContext
from .memory_store import MemoryStore
from .json_store import JSONStore
from .sqlite_store import SQLiteStore
from ...exceptions import StorageNotFoundError

# 存储类型映射
STORAGE_TYPES = {
    'memory': MemoryStore,
    'json': JSONStore,
    'sqlite': SQLiteStore
}


def create_store(
        store_type: str = 'memory',
        **kwargs
) -> NodeStoreAdapter:
    """
    创建存储适配器

    Args:
        store_type: 存储类型 ('memory', 'json', 'sqlite')
        **kwargs: 传递给存储构造函数的参数

    Returns:
        存储适配器实例
    """
    store_class = STORAGE_TYPES.get(store_type.lower())
    if not store_class:
        raise StorageNotFoundError(storage_type=store_type)

    return store_class(**kwargs)


__all__ = [
    'NodeStoreAdapter',
    'StorageContext',
    'MemoryStore',
    'JSONStore',
    'SQLiteStore',
    'create_store',
    'STORAGE_TYPES'
]
