"""
测试大纲导入和子树导出
"""
import sys
import os

import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from nested_tree.config.tree_config import TreeConfig
from nested_tree.core.node import NodeRepository
from nested_tree.data.storage import MemoryStore
from nested_tree.services.import_export import OutlineImporter, DumpExporter, DataImportError


@pytest.fixture
def category_repo():
    config = TreeConfig(title_field='name')
    return NodeRepository('category', config, MemoryStore(config))


@pytest.fixture
def forum_repo():
    config = TreeConfig(tree_field='tree_id', title_field='name')
    return NodeRepository('forum', config, MemoryStore(config))


def outline_frame():
    """两级缩进的大纲"""
    return pd.DataFrame({
        'name': ['全部商品', '  图书', '    小说', '    历史', '  电子产品', '    手机'],
        'code': ['ALL', 'BOOK', 'NOVEL', None, 'ELEC', 'PHONE'],
        'stock': [None, 10, 4, 6, 20, 20],
    })


class TestOutlineImporter:
    """大纲导入"""

    def test_parse_levels(self, category_repo):
        parsed = OutlineImporter(category_repo).parse_data(outline_frame())
        assert [p['level'] for p in parsed] == [0, 1, 2, 2, 1, 2]
        assert [p['title'] for p in parsed][:3] == ['全部商品', '图书', '小说']
        assert parsed[3]['payload'] == {'stock': 6}
        assert parsed[1]['payload'] == {'code': 'BOOK', 'stock': 10}
        assert type(parsed[1]['payload']['stock']) in (int, float)

    def test_import_builds_tree(self, category_repo, check_tree):
        roots = OutlineImporter(category_repo).import_data(outline_frame())
        assert len(roots) == 1

        rows = check_tree(category_repo)
        assert [(r['name'], r['_level_']) for r in rows] == [
            ('全部商品', 0), ('图书', 1), ('小说', 2), ('历史', 2), ('电子产品', 1), ('手机', 2)
        ]
        phone = next(r for r in rows if r['name'] == '手机')
        assert phone['_path_'] == '/全部商品/电子产品/手机'
        assert phone['code'] == 'PHONE'

    def test_multiple_roots_in_multi_tree_mode(self, forum_repo, check_tree):
        df = pd.DataFrame({'name': ['技术', '  Python', '生活', '  旅行', '  美食']})
        roots = OutlineImporter(forum_repo).import_data(df)
        assert [r.tree_id for r in roots] == [1, 2]
        assert [r['name'] for r in check_tree(forum_repo, 2)] == ['生活', '旅行', '美食']

    def test_second_root_in_single_tree_mode_rolls_back(self, category_repo):
        df = pd.DataFrame({'name': ['技术', '  Python', '生活']})
        with pytest.raises(DataImportError):
            OutlineImporter(category_repo).import_data(df)
        assert category_repo.count_nodes() == 0

    def test_level_jump_rejected(self, category_repo):
        df = pd.DataFrame({'name': ['根', '      太深']})
        with pytest.raises(DataImportError) as exc_info:
            OutlineImporter(category_repo).import_data(df)
        assert exc_info.value.details['row'] == 1
        assert category_repo.count_nodes() == 0

    def test_blank_rows_skipped(self, category_repo):
        df = pd.DataFrame({'name': ['根', '', None, '  子']})
        assert len(OutlineImporter(category_repo).parse_data(df)) == 2

    def test_custom_indent_and_column(self, category_repo):
        df = pd.DataFrame({'标签': ['根', '    子'], 'name_en': ['root', 'child']})
        importer = OutlineImporter(category_repo, {'title_column': '标签', 'indent': 4})
        parsed = importer.parse_data(df)
        assert [p['level'] for p in parsed] == [0, 1]
        assert parsed[1]['payload'] == {'name_en': 'child'}

    def test_requires_title_field(self):
        config = TreeConfig()
        repo = NodeRepository('plain', config, MemoryStore(config))
        with pytest.raises(DataImportError):
            OutlineImporter(repo)

    def test_missing_file(self, category_repo, tmp_path):
        with pytest.raises(DataImportError):
            OutlineImporter(category_repo).import_data(str(tmp_path / "missing.xlsx"))


class TestDumpExporter:
    """子树导出"""

    def test_to_dataframe(self, category_repo):
        OutlineImporter(category_repo).import_data(outline_frame())
        df = DumpExporter(category_repo).to_dataframe(category_repo.get_root())
        assert list(df.columns[:6]) == ['_key_', '_level_', '_parent_', '_path_', '_first_', '_last_']
        assert df['name'].tolist()[:3] == ['全部商品', '  图书', '    小说']
        assert df['_level_'].tolist() == [0, 1, 2, 2, 1, 2]

    def test_summary(self, category_repo):
        OutlineImporter(category_repo).import_data(outline_frame())
        summary = DumpExporter(category_repo).summary(category_repo.get_root())
        assert summary == {'nodes': 6, 'levels': {0: 1, 1: 2, 2: 3}}

    def test_outline_round_trip(self, category_repo, forum_repo):
        OutlineImporter(category_repo).import_data(outline_frame())
        outline = DumpExporter(category_repo).to_outline(category_repo.get_root())
        assert outline.columns[0] == 'name'
        assert 'left_id' not in outline.columns

        OutlineImporter(forum_repo).import_data(outline)
        original = [(r['name'], r['_level_']) for r in category_repo.dump(category_repo.get_root())]
        copied = [(r['name'], r['_level_']) for r in forum_repo.dump(forum_repo.get_root(1))]
        assert copied == original

    def test_excel_round_trip(self, category_repo, forum_repo, tmp_path):
        OutlineImporter(category_repo).import_data(outline_frame())
        path = DumpExporter(category_repo).to_excel(
            category_repo.get_root(), tmp_path / "out" / "tree.xlsx", outline=True
        )
        assert path.exists()

        roots = OutlineImporter(forum_repo).import_data(str(path))
        assert len(roots) == 1
        assert forum_repo.count_nodes(1) == 6
