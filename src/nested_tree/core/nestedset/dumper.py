"""
子树导出器
按先序遍历子树，为每一行标注层级、父节点、路径和同级首尾标记
"""
from typing import Any, Dict, Iterable, Iterator, List, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.interfaces.inode import INestedNode

# 标注字段
KEY = '_key_'
LEVEL = '_level_'
PARENT = '_parent_'
PATH = '_path_'
FIRST = '_first_'
LAST = '_last_'


class SubtreeDumper:
    """子树导出器"""

    def __init__(self, config: TreeConfig):
        self._config = config

    def dump(self, root: INestedNode, rows: Iterable[Dict[str, Any]],
             include_root: bool = True,
             attributes: Optional[Iterable[str]] = None) -> Iterator[Dict[str, Any]]:
        """
        标注子树的行

        层级由相邻两行的左索引差值递推得到：
        level += previous_left - current_left + 2

        Args:
            root: 子树的根节点
            rows: 按左索引升序排列的子树行（是否包含根须与 include_root 一致）
            include_root: 是否包含根节点本身
            attributes: 只保留这些负载字段（主键和树结构字段总是保留）

        Yields:
            标注后的行，顺序与输入一致
        """
        config = self._config
        pk_field = config.pk_field
        title_field = config.title_field
        keep = self._kept_fields(attributes)

        level = -2 if include_root else -1
        previous_left = root.left
        parents: Dict[int, Any] = {-1: None, 0: root.node_id}
        path: Dict[int, Any] = {0: root.get(title_field)} if title_field else {}

        dumped: List[Dict[str, Any]] = []
        first_of: Dict[Any, int] = {}
        last_of: Dict[Any, int] = {}

        for record in rows:
            node = dict(record) if keep is None else {k: v for k, v in record.items() if k in keep}
            node[KEY] = record[pk_field]

            level += previous_left - record[config.left_field] + 2
            previous_left = record[config.left_field]
            node[LEVEL] = level
            node[PARENT] = parents.get(level - 1)
            parents[level] = record[pk_field]

            index = len(dumped)
            first_of.setdefault(node[PARENT], index)
            last_of[node[PARENT]] = index
            node[FIRST] = False
            node[LAST] = False

            node[PATH] = ''
            if title_field:
                path[level] = record.get(title_field)
                node[PATH] = ''.join(f"/{path[i]}" for i in range(level + 1))

            dumped.append(node)

        for index in first_of.values():
            dumped[index][FIRST] = True
        for index in last_of.values():
            dumped[index][LAST] = True

        yield from dumped

    def _kept_fields(self, attributes: Optional[Iterable[str]]) -> Optional[set]:
        if attributes is None:
            return None
        config = self._config
        keep = set(attributes)
        keep.update(config.index_fields)
        if config.title_field:
            keep.add(config.title_field)
        return keep
