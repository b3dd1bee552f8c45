"""
序列化模块
负责将节点负载数据转换为可存储格式
"""

from .base import Serializer, Deserializer
from .json_serializer import JSONSerializer

__all__ = [
    'Serializer',
    'Deserializer',
    'JSONSerializer'
]
