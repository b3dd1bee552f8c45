"""
测试接口定义
"""
import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree.config.tree_config import TreeConfig
from nested_tree.core.node import TreeNode
from nested_tree.data.query import NodeQuery, Predicate
from nested_tree.data.storage import MemoryStore, JSONStore, SQLiteStore, StorageContext
from nested_tree.interfaces import INestedNode, INodeStore, IQuery, PersistOutcome


def test_implementations():
    """测试实现类满足接口"""
    assert issubclass(TreeNode, INestedNode)
    assert issubclass(NodeQuery, IQuery)
    for store_class in (MemoryStore, JSONStore, SQLiteStore):
        assert issubclass(store_class, INodeStore)


def test_interfaces_are_abstract():
    """测试接口不能直接实例化"""
    for interface in (INestedNode, INodeStore, IQuery):
        with pytest.raises(TypeError):
            interface()


def test_persist_outcome():
    """测试持久化结果枚举"""
    assert PersistOutcome.SAVED is not PersistOutcome.CONFLICT


def test_query_validation():
    """测试查询验证"""
    assert NodeQuery().where('left_id', '>', 1).validate()
    assert not NodeQuery(limit=0).validate()
    with pytest.raises(ValueError):
        Predicate('left_id', 'LIKE', 1)


def test_query_matching():
    """测试查询匹配"""
    query = NodeQuery(partition=('tree_id', 2)).where('left_id', '>=', 3)
    assert query.matches({'tree_id': 2, 'left_id': 3})
    assert not query.matches({'tree_id': 1, 'left_id': 3})
    assert not query.matches({'tree_id': 2, 'left_id': None})
    assert query.describe() == "tree_id = 2 AND left_id >= 3"


def test_storage_context(tmp_path):
    """测试存储上下文管理器"""
    with StorageContext(SQLiteStore(":memory:", TreeConfig())) as store:
        row = {'id': None, 'left_id': 1, 'right_id': 2}
        assert store.persist(row, create=True) is PersistOutcome.SAVED
        store.backup(str(tmp_path / "backup.db"))
    assert store._shared_conn is None

    restored = SQLiteStore(str(tmp_path / "backup.db"), TreeConfig())
    assert restored.count_matching(NodeQuery()) == 1
