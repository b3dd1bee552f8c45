"""
接口定义包
"""

from .inode import INestedNode
from .idatastore import INodeStore, PersistOutcome
from .iquery import IQuery

__all__ = [
    'INestedNode',
    'INodeStore',
    'PersistOutcome',
    'IQuery'
]
