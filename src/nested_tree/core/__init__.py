"""
核心模块包
包含嵌套集引擎和节点管理
"""

# 导入嵌套集引擎
from .nestedset import (
    RangeShifter, SubtreeMover, Placement, RootInsertResult,
    TreeQueryPlanner, SubtreeDumper
)

# 导入节点模块
from .node import TreeNode, NodeFactory, NodeRepository

__all__ = [
    # 嵌套集引擎
    'RangeShifter',
    'SubtreeMover',
    'Placement',
    'RootInsertResult',
    'TreeQueryPlanner',
    'SubtreeDumper',

    # 节点模块
    'TreeNode',
    'NodeFactory',
    'NodeRepository',
]
