"""
测试系统入口和节点仓库
"""
import sys
import os
import logging

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree import NestedTreeSystem, TreeConfig, NodeRepository, __version__
from nested_tree.data.storage import MemoryStore, JSONStore, SQLiteStore
from nested_tree.data.storage.exceptions import StorageOperationError
from nested_tree.exceptions import (
    ConfigurationError, ValidationError, NodeNotFoundError,
    PersistenceFailure, TreeNotFoundError, InvalidOperandError
)


def test_import():
    """测试导入"""
    assert NestedTreeSystem is not None
    assert __version__ == "1.0.0"


class TestSystem:
    """系统入口"""

    def test_register_node_type(self):
        system = NestedTreeSystem()
        repo = system.register_node_type('category', {'title_field': 'name'})
        assert isinstance(repo, NodeRepository)
        assert system.get_repository('category') is repo
        assert system.list_node_types() == ['category']
        assert isinstance(repo.store, MemoryStore)
        assert repo.config.title_field == 'name'

    def test_duplicate_or_unknown_node_type(self):
        system = NestedTreeSystem()
        system.register_node_type('category')
        with pytest.raises(ValidationError):
            system.register_node_type('category')
        with pytest.raises(ValidationError):
            system.get_repository('forum')
        with pytest.raises(ValidationError):
            system.register_node_type('bad name')

    def test_invalid_tree_config_is_fatal(self):
        system = NestedTreeSystem()
        with pytest.raises(ConfigurationError):
            system.register_node_type('category', {'primary_key': ['a', 'b']})

    def test_default_storage_used_once(self):
        config = TreeConfig(title_field='name')
        store = MemoryStore(config)
        system = NestedTreeSystem(storage=store)
        first = system.register_node_type('category', config)
        second = system.register_node_type('forum', config)
        assert first.store is store
        assert second.store is not store

    def test_storage_config_mismatch(self):
        system = NestedTreeSystem()
        store = MemoryStore(TreeConfig())
        with pytest.raises(ConfigurationError):
            system.register_node_type('category', TreeConfig(tree_field='tree_id'), storage=store)

    def test_sqlite_backend(self, tmp_path):
        db_path = str(tmp_path / "trees.db")
        system = NestedTreeSystem({
            'system_name': 'shop',
            'storage_backend': 'sqlite',
            'storage_path': db_path,
        })
        categories = system.register_node_type('category', {'title_field': 'name'})
        menus = system.register_node_type('menu', {'title_field': 'label', 'tree_field': 'menu_id'})
        assert isinstance(categories.store, SQLiteStore)
        assert categories.store.table == 'category'
        assert menus.store.table == 'menu'

        root = categories.new_root(categories.create('全部'))
        categories.insert_as_first_child_of(categories.create('图书'), root)
        system.close()

        reopened = NestedTreeSystem({
            'system_name': 'shop',
            'storage_backend': 'sqlite',
            'storage_path': db_path,
        }).register_node_type('category', {'title_field': 'name'})
        assert [r['name'] for r in reopened.dump(reopened.get_root())] == ['全部', '图书']

    def test_json_backend(self, tmp_path):
        system = NestedTreeSystem({
            'system_name': 'shop',
            'storage_backend': 'json',
            'storage_path': str(tmp_path / "trees.json"),
        })
        repo = system.register_node_type('category')
        assert isinstance(repo.store, JSONStore)
        assert repo.store.file_path.name == 'trees_category.json'

    def test_system_info_and_health(self):
        system = NestedTreeSystem()
        repo = system.register_node_type('forum', {'tree_field': 'tree_id', 'title_field': 'name'})
        root = repo.new_root(repo.create('first'))
        repo.insert_as_first_child_of(repo.create('child'), root)
        repo.new_root(repo.create('second'))

        info = system.get_system_info()
        assert info['system_name'] == 'nested_tree'
        assert info['node_types']['forum']['node_count'] == 3
        assert info['node_types']['forum']['tree_count'] == 2

        health = system.health_check()
        assert health['status'] == 'healthy'
        assert health['node_types']['forum'] == {
            '1': {'nodes': 2, 'healthy': True},
            '2': {'nodes': 1, 'healthy': True},
        }

    def test_health_check_detects_gap(self):
        system = NestedTreeSystem()
        repo = system.register_node_type('category')
        root = repo.new_root(repo.create())
        repo.insert_as_first_child_of(repo.create(), root)
        # 直接删除行而不收拢空位
        repo.store.delete_matching(repo.planner.first_child_query(root))
        assert system.health_check()['status'] == 'degraded'

    def test_logging_disabled(self):
        system = NestedTreeSystem({'system_name': 'quiet', 'storage_backend': 'memory',
                                   'enable_logging': False})
        assert system.settings.enable_logging is False
        assert 'quiet' in system.get_system_info()['system_name']


class FailingStore(MemoryStore):
    """第N次更新时失败的存储"""

    def __init__(self, tree_config, fail_on):
        super().__init__(tree_config)
        self.fail_on = fail_on
        self.updates = 0

    def persist(self, row, create=False):
        if not create:
            self.updates += 1
            if self.updates == self.fail_on:
                raise StorageOperationError("磁盘已满", operation="persist", store_type=self.store_type)
        return super().persist(row, create)


class TestRepository:
    """节点仓库"""

    def test_get_and_save(self, repo, sample_tree):
        b = repo.get(sample_tree['b'].node_id)
        assert b.title == 'b'
        b['color'] = 'green'
        repo.save(b)
        assert repo.get(b.node_id)['color'] == 'green'
        assert (b.left, b.right) == (8, 9)

        with pytest.raises(NodeNotFoundError):
            repo.get(999)
        with pytest.raises(InvalidOperandError):
            repo.save(repo.create('new'))

    def test_require_root(self, repo):
        with pytest.raises(TreeNotFoundError):
            repo.require_root()

    def test_failed_move_rolls_back(self, single_config, check_tree):
        store = FailingStore(single_config, fail_on=10**6)
        repo = NodeRepository('category', single_config, store)
        root = repo.new_root(repo.create('root'))
        a = repo.insert_as_last_child_of(repo.create('a'), root)
        repo.insert_as_last_child_of(repo.create('a1'), a)
        c = repo.insert_as_last_child_of(repo.create('c'), repo.refresh(root))
        before = [(r['name'], r['left_id'], r['right_id']) for r in check_tree(repo)]

        store.fail_on = store.updates + 3
        with pytest.raises(PersistenceFailure) as exc_info:
            repo.make_last_child_of(repo.refresh(a), c)
        assert exc_info.value.details['operation'] == 'make_last_child_of'

        after = [(r['name'], r['left_id'], r['right_id']) for r in check_tree(repo)]
        assert after == before

    def test_stats(self, repo, sample_tree):
        stats = repo.get_stats()
        assert stats['node_type'] == 'category'
        assert stats['node_count'] == 6
        assert repo.count_nodes() == 6

    def test_mutations_are_logged(self, repo, caplog):
        with caplog.at_level(logging.INFO, logger='nested_tree'):
            root = repo.new_root(repo.create('root'))
            repo.insert_as_first_child_of(repo.create('child'), root)
        messages = [record.getMessage() for record in caplog.records]
        assert any('新建树根' in m for m in messages)
        assert any('插入节点' in m for m in messages)
