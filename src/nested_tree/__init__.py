"""
嵌套集树 - 用左右索引把任意深度的树保存为扁平的行
"""

__version__ = "1.0.0"

from .system import NestedTreeSystem
from .config import TreeConfig, SystemSettings
from .core.node import TreeNode, NodeRepository

__all__ = ['NestedTreeSystem', 'TreeConfig', 'SystemSettings', 'TreeNode', 'NodeRepository']
