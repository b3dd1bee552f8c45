"""
子树导出器
把带标注的子树行转换为 pandas DataFrame 或写入Excel
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from nested_tree.core.node import NodeRepository, TreeNode
from nested_tree.exceptions import SerializationError

logger = logging.getLogger(__name__)

ANNOTATION_COLUMNS = ['_key_', '_level_', '_parent_', '_path_', '_first_', '_last_']


class DumpExporter:
    """导出子树为表格"""

    def __init__(self, repository: NodeRepository, indent: int = 2):
        """
        Args:
            repository: 节点仓库
            indent: 标题列每级缩进的空格数，与大纲导入一致
        """
        self.repository = repository
        self.indent = indent

    def to_dataframe(self, node: TreeNode, include_root: bool = True,
                     attributes: Optional[Iterable[str]] = None,
                     indent_titles: bool = True) -> pd.DataFrame:
        """
        导出为DataFrame

        标注列在前，其余字段按出现顺序排列；
        indent_titles 为True时标题列按层级加前导空格
        """
        rows = list(self.repository.dump(node, include_root, attributes))
        title_field = self.repository.config.title_field

        if indent_titles and title_field:
            for row in rows:
                row[title_field] = ' ' * (self.indent * row['_level_']) + str(row.get(title_field, ''))

        columns: List[str] = list(ANNOTATION_COLUMNS)
        for row in rows:
            for key in row:
                if key not in columns:
                    columns.append(key)

        return pd.DataFrame(rows, columns=columns)

    def to_outline(self, node: TreeNode, include_root: bool = True) -> pd.DataFrame:
        """只含缩进标题和负载字段的大纲表，可被 OutlineImporter 重新导入"""
        config = self.repository.config
        df = self.to_dataframe(node, include_root)
        drop = [c for c in ANNOTATION_COLUMNS + list(config.index_fields) if c in df.columns]
        outline = df.drop(columns=drop)
        if config.title_field in outline.columns:
            ordered = [config.title_field] + [c for c in outline.columns if c != config.title_field]
            outline = outline[ordered]
        return outline

    def to_excel(self, node: TreeNode, file_path: Union[str, Path],
                 include_root: bool = True, outline: bool = False,
                 sheet_name: str = 'tree') -> Path:
        """写入Excel文件"""
        df = self.to_outline(node, include_root) if outline else self.to_dataframe(node, include_root)
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            df.to_excel(path, sheet_name=sheet_name, index=False)
        except Exception as e:
            raise SerializationError(f"写入Excel失败: {e}", data_type="xlsx")

        logger.info(f"子树已导出: {path} ({len(df)} 行)")
        return path

    def summary(self, node: TreeNode) -> Dict[str, Any]:
        """按层级统计节点数"""
        df = self.to_dataframe(node, indent_titles=False)
        if df.empty:
            return {'nodes': 0, 'levels': {}}
        levels = df.groupby('_level_').size()
        return {
            'nodes': int(len(df)),
            'levels': {int(level): int(count) for level, count in levels.items()}
        }
