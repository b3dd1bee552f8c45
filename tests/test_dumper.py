"""
测试子树导出
"""
import sys
import os
import types

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree.config.tree_config import TreeConfig
from nested_tree.core.node import NodeRepository
from nested_tree.data.storage import MemoryStore


def by_name(rows):
    return {r['name']: r for r in rows}


class TestDump:
    """带标注的先序序列"""

    def test_dump_is_lazy_generator(self, repo, sample_tree):
        result = repo.dump(sample_tree['root'])
        assert isinstance(result, types.GeneratorType)
        assert len(list(result)) == 6
        assert list(result) == []

    def test_levels_and_parents(self, repo, sample_tree):
        rows = list(repo.dump(sample_tree['root']))
        assert [r['name'] for r in rows] == ['root', 'a', 'a1', 'a2', 'b', 'c']
        assert [r['_level_'] for r in rows] == [0, 1, 2, 2, 1, 1]

        named = by_name(rows)
        assert named['root']['_parent_'] is None
        assert named['a']['_parent_'] == sample_tree['root'].node_id
        assert named['a2']['_parent_'] == sample_tree['a'].node_id
        assert named['c']['_parent_'] == sample_tree['root'].node_id
        assert named['a1']['_key_'] == sample_tree['a1'].node_id

    def test_paths(self, repo, sample_tree):
        named = by_name(repo.dump(sample_tree['root']))
        assert named['root']['_path_'] == '/root'
        assert named['a2']['_path_'] == '/root/a/a2'
        assert named['b']['_path_'] == '/root/b'

    def test_first_and_last_flags(self, repo, sample_tree):
        named = by_name(repo.dump(sample_tree['root']))
        flags = {name: (r['_first_'], r['_last_']) for name, r in named.items()}
        assert flags == {
            'root': (True, True),
            'a': (True, False),
            'b': (False, False),
            'c': (False, True),
            'a1': (True, False),
            'a2': (False, True),
        }

    def test_without_root(self, repo, sample_tree):
        rows = list(repo.dump(sample_tree['root'], include_root=False))
        assert [r['name'] for r in rows] == ['a', 'a1', 'a2', 'b', 'c']
        assert [r['_level_'] for r in rows] == [0, 1, 1, 0, 0]

        named = by_name(rows)
        assert named['a']['_parent_'] is None
        assert named['a1']['_parent_'] == sample_tree['a'].node_id
        assert named['a1']['_path_'] == '/a/a1'
        assert named['a']['_first_'] and named['c']['_last_']

    def test_dump_of_inner_subtree(self, repo, sample_tree):
        rows = list(repo.dump(sample_tree['a']))
        assert [(r['name'], r['_level_']) for r in rows] == [('a', 0), ('a1', 1), ('a2', 1)]
        assert rows[0]['_parent_'] is None

    def test_attribute_filter(self, repo):
        root = repo.new_root(repo.create('root', color='red', size=3))
        repo.insert_as_first_child_of(repo.create('child', color='blue', size=1), root)
        rows = list(repo.dump(repo.refresh(root), attributes=['color']))
        assert 'size' not in rows[1]
        assert rows[1]['color'] == 'blue'
        assert rows[1]['name'] == 'child'
        assert rows[1]['id'] == rows[1]['_key_']
        assert rows[1]['left_id'] == 2

    def test_path_empty_without_title_field(self):
        config = TreeConfig()
        repo = NodeRepository('plain', config, MemoryStore(config))
        root = repo.new_root(repo.create(label='x'))
        repo.insert_as_first_child_of(repo.create(label='y'), root)
        rows = list(repo.dump(repo.refresh(root)))
        assert [r['_path_'] for r in rows] == ['', '']

    def test_parent_chain_rebuilds_path(self, repo, sample_tree, check_tree):
        repo.make_last_child_of(sample_tree['b'], sample_tree['a2'])
        repo.insert_as_first_child_of(repo.create('deep'), repo.refresh(sample_tree['b']))
        rows = check_tree(repo)

        by_key = {r['_key_']: r for r in rows}
        for row in rows:
            titles = []
            current = row
            while current is not None:
                titles.append(current['name'])
                current = by_key.get(current['_parent_'])
            assert '/' + '/'.join(reversed(titles)) == row['_path_']
            assert len(titles) - 1 == row['_level_']
