"""
pytest配置文件
用于设置测试环境和共享fixtures
"""
import sys
import os

import pytest

# 将src目录添加到Python路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree.config.tree_config import TreeConfig
from nested_tree.core.node import NodeRepository
from nested_tree.data.storage import MemoryStore, JSONStore, SQLiteStore


def make_store(kind, config, tmp_path):
    """按类型创建存储"""
    if kind == 'memory':
        return MemoryStore(config)
    elif kind == 'json':
        return JSONStore(str(tmp_path / "nodes.json"), config)
    else:  # sqlite
        return SQLiteStore(str(tmp_path / "nodes.db"), config)


@pytest.fixture
def single_config():
    """单棵树配置"""
    return TreeConfig(title_field='name')


@pytest.fixture
def multi_config():
    """多棵树配置"""
    return TreeConfig(tree_field='tree_id', title_field='name')


@pytest.fixture(params=['memory', 'sqlite'])
def repo(request, single_config, tmp_path):
    """单棵树仓库，分别使用内存存储和SQLite存储"""
    store = make_store(request.param, single_config, tmp_path)
    yield NodeRepository('category', single_config, store)
    store.close()


@pytest.fixture(params=['memory', 'sqlite'])
def multi_repo(request, multi_config, tmp_path):
    """多棵树仓库"""
    store = make_store(request.param, multi_config, tmp_path)
    yield NodeRepository('forum', multi_config, store)
    store.close()


@pytest.fixture
def check_tree():
    """
    检查一棵树的嵌套集不变量：
    1..2N 每个数字恰好出现一次，区间互相嵌套不交叉，树根为 (1, 2N)
    """
    def _check(repo, tree_id=None):
        root = repo.get_root(tree_id)
        assert root is not None
        rows = list(repo.dump(root))
        config = repo.config
        bounds = sorted([r[config.left_field] for r in rows] + [r[config.right_field] for r in rows])
        assert bounds == list(range(1, 2 * len(rows) + 1))
        assert root.left == 1 and root.right == 2 * len(rows)

        for a in rows:
            assert a[config.left_field] < a[config.right_field]
            for b in rows:
                la, ra = a[config.left_field], a[config.right_field]
                lb, rb = b[config.left_field], b[config.right_field]
                # 要么不相交，要么一个包含另一个
                assert ra < lb or rb < la or (la <= lb and rb <= ra) or (lb <= la and ra <= rb)
        return rows

    return _check


@pytest.fixture
def sample_tree(repo):
    """
    构造示例树:
        root
        ├── a
        │   ├── a1
        │   └── a2
        ├── b
        └── c
    """
    root = repo.new_root(repo.create('root'))
    a = repo.insert_as_last_child_of(repo.create('a'), root)
    b = repo.insert_as_last_child_of(repo.create('b'), repo.refresh(root))
    c = repo.insert_as_last_child_of(repo.create('c'), repo.refresh(root))
    a1 = repo.insert_as_last_child_of(repo.create('a1'), repo.refresh(a))
    a2 = repo.insert_as_last_child_of(repo.create('a2'), repo.refresh(a))
    nodes = {'root': root, 'a': a, 'b': b, 'c': c, 'a1': a1, 'a2': a2}
    for node in nodes.values():
        repo.refresh(node)
    return nodes
