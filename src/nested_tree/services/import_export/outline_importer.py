"""
大纲导入器
从Excel表格或DataFrame导入树：标题列的前导空格表示层级，每2个空格算一级
"""
import logging
import os
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

import pandas as pd

from nested_tree.core.node import NodeRepository, TreeNode
from nested_tree.exceptions import BaseError
from .base_importer import DataImporter, DataImportError

logger = logging.getLogger(__name__)

Source = Union[str, Path, pd.DataFrame]


class OutlineImporter(DataImporter):
    """
    大纲导入器

    配置项：
        title_column: 标题列名（默认自动查找）
        indent: 每级缩进的空格数（默认2）
        sheet_name: Excel工作表（默认第一个）
    """

    def __init__(self, repository: NodeRepository, config: Dict[str, Any] = None):
        self.repository = repository
        super().__init__(config)
        self.indent = self.config.get('indent', 2)

        # 统计信息
        self.stats = {
            'sources_processed': 0,
            'nodes_parsed': 0,
            'nodes_created': 0,
            'trees_created': 0
        }

    def _validate_config(self):
        if not self.repository.config.title_field:
            raise DataImportError("节点类型未配置标题字段，无法导入大纲")
        indent = self.config.get('indent', 2)
        if not isinstance(indent, int) or indent <= 0:
            raise DataImportError(f"缩进必须是正整数: {indent}")

    # ============ 抽象方法实现 ============

    def validate_source(self, source: Source) -> bool:
        """DataFrame 或存在的Excel文件"""
        if isinstance(source, pd.DataFrame):
            return True
        if not os.path.exists(source):
            return False
        return Path(source).suffix.lower() in ['.xlsx', '.xls', '.xlsm']

    def parse_data(self, source: Source) -> List[Dict[str, Any]]:
        """
        解析大纲

        Returns:
            [{'row_index', 'raw_name', 'title', 'level', 'payload'}, ...]
        """
        if isinstance(source, pd.DataFrame):
            df = source
        else:
            try:
                df = pd.read_excel(source, sheet_name=self.config.get('sheet_name', 0))
            except Exception as e:
                raise DataImportError(f"读取Excel失败: {e}", source=str(source))

        title_column = self._find_title_column(list(df.columns))
        if title_column is None:
            raise DataImportError("未找到标题列", source=str(source))

        parsed = []
        for idx, row in df.iterrows():
            value = row[title_column]
            raw_name = str(value) if pd.notna(value) else ''
            if not raw_name.strip():
                continue

            payload = {}
            for column in df.columns:
                if column == title_column or pd.isna(row[column]):
                    continue
                payload[str(column)] = self._to_python(row[column])

            parsed.append({
                'row_index': idx,
                'raw_name': raw_name,
                'title': raw_name.strip(),
                'level': self._parse_level(raw_name),
                'payload': payload
            })
            self.stats['nodes_parsed'] += 1

        self.stats['sources_processed'] += 1
        return parsed

    def build_tree(self, parsed_data: List[Dict[str, Any]]) -> List[TreeNode]:
        """
        按大纲顺序插入节点：0级为树根，其余作为最近一个上级节点的最后一个子节点

        整个导入在一个原子批次内完成，任一行出错则全部回滚
        """
        repository = self.repository
        roots: List[TreeNode] = []
        stack: List[TreeNode] = []  # stack[level] 为该层级最近的节点

        try:
            with repository.store.atomic():
                for item in parsed_data:
                    level = item['level']
                    if level > len(stack):
                        raise DataImportError(
                            f"层级跳跃: {item['raw_name']!r} 为{level}级，上一节点为{len(stack) - 1}级",
                            row=item['row_index']
                        )

                    node = repository.create(item['title'], **item['payload'])
                    if level == 0:
                        repository.new_root(node)
                        roots.append(node)
                    else:
                        parent = stack[level - 1]
                        repository.insert_as_last_child_of(node, parent)
                        # 插入后祖先的右索引已变化
                        for ancestor in stack[:level - 1]:
                            repository.refresh(ancestor)

                    del stack[level:]
                    stack.append(node)
                    self.stats['nodes_created'] += 1
        except DataImportError:
            raise
        except BaseError as e:
            raise DataImportError(f"写入树失败: {e}") from e

        self.stats['trees_created'] += len(roots)
        logger.info(f"大纲导入完成: {len(parsed_data)} 个节点, {len(roots)} 棵树")
        return roots

    # ============ 工具方法 ============

    def _find_title_column(self, columns: List[Any]) -> Optional[Any]:
        """查找标题列"""
        if 'title_column' in self.config:
            wanted = self.config['title_column']
            return wanted if wanted in columns else None

        title_field = self.repository.config.title_field
        for col in columns:
            text = str(col)
            if text == title_field or '名称' in text or '节点' in text or 'name' in text.lower():
                return col

        return columns[0] if columns else None

    def _parse_level(self, raw_name: str) -> int:
        """解析层级"""
        leading_spaces = len(raw_name) - len(raw_name.lstrip(' '))
        return leading_spaces // self.indent

    @staticmethod
    def _to_python(value: Any) -> Any:
        """numpy/pandas 标量转换为Python原生类型"""
        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()
        if hasattr(value, 'item'):
            return value.item()
        return value
