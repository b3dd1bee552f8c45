"""
嵌套集引擎
索引运算、区间平移、子树移动、查询规划和子树导出
"""

from . import arithmetic
from .shifter import RangeShifter, partition_query
from .mover import SubtreeMover, Placement, RootInsertResult, destination_for
from .planner import TreeQueryPlanner
from .dumper import SubtreeDumper

__all__ = [
    'arithmetic',
    'RangeShifter',
    'partition_query',
    'SubtreeMover',
    'Placement',
    'RootInsertResult',
    'destination_for',
    'TreeQueryPlanner',
    'SubtreeDumper',
]
