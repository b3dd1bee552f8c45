"""
数据模块
包含查询对象、存储、序列化等数据相关功能
"""

from .query import Predicate, NodeQuery

__all__ = [
    'Predicate',
    'NodeQuery'
]
