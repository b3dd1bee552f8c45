"""
JSON序列化器
使用标准json模块序列化节点负载数据
"""
import json
from datetime import datetime, date
from typing import Any, Dict
from decimal import Decimal
from pathlib import Path

from .base import Serializer, Deserializer
from ...exceptions import SerializationError


class DateTimeEncoder(json.JSONEncoder):
    """处理日期时间对象的JSON编码器"""

    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return {
                '__type__': 'datetime' if isinstance(obj, datetime) else 'date',
                'value': obj.isoformat()
            }
        elif isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, Path):
            return str(obj)
        elif hasattr(obj, 'to_dict'):
            # 支持自定义序列化对象
            return obj.to_dict()

        return super().default(obj)


def _decode_hook(data: Dict) -> Any:
    """还原带类型标记的对象"""
    if data.keys() == {'__type__', 'value'}:
        if data['__type__'] == 'datetime':
            return datetime.fromisoformat(data['value'])
        if data['__type__'] == 'date':
            return date.fromisoformat(data['value'])
    return data


class JSONSerializer(Serializer, Deserializer):
    """JSON序列化器"""

    def __init__(self,
                 ensure_ascii: bool = False,
                 indent: int = None,
                 sort_keys: bool = True):
        """
        初始化JSON序列化器

        Args:
            ensure_ascii: 是否确保ASCII编码
            indent: 缩进空格数，None为紧凑格式
            sort_keys: 是否按键排序
        """
        self.ensure_ascii = ensure_ascii
        self.indent = indent
        self.sort_keys = sort_keys

    def dumps(self, obj: Any) -> str:
        """序列化为JSON字符串"""
        try:
            return json.dumps(
                obj,
                ensure_ascii=self.ensure_ascii,
                indent=self.indent,
                sort_keys=self.sort_keys,
                cls=DateTimeEncoder
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"JSON序列化失败: {e}", data_type=type(obj).__name__)

    def loads(self, text: str) -> Any:
        """从JSON字符串反序列化"""
        try:
            return json.loads(text, object_hook=_decode_hook)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"JSON反序列化失败: {e}", data_type="str")

    def serialize(self, obj: Any) -> bytes:
        """序列化为字节流"""
        return self.dumps(obj).encode('utf-8')

    def serialize_to_dict(self, obj: Any) -> Dict:
        """序列化为只含JSON基本类型的结构"""
        return json.loads(self.dumps(obj))

    def deserialize(self, data: bytes) -> Any:
        """从字节流反序列化"""
        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise SerializationError(f"JSON反序列化失败: {e}", data_type="bytes")
        return self.loads(text)

    def deserialize_from_dict(self, data_dict: Dict) -> Any:
        """从基本类型结构还原对象"""
        return self.loads(json.dumps(data_dict))

    def save_to_file(self, obj: Any, filepath: str) -> None:
        """保存对象到文件"""
        data = self.serialize(obj)
        with open(filepath, 'wb') as f:
            f.write(data)

    def load_from_file(self, filepath: str) -> Any:
        """从文件加载对象"""
        with open(filepath, 'rb') as f:
            data = f.read()
        return self.deserialize(data)
