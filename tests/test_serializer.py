"""
测试序列化模块
"""
import sys
import os
from datetime import datetime, date
from decimal import Decimal

import pytest

# 添加src到路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree.data.serializer import JSONSerializer
from nested_tree.exceptions import SerializationError


def test_json_serializer():
    """测试JSON序列化器"""
    serializer = JSONSerializer()

    # 测试数据
    test_data = {
        "name": "产品分类",
        "created_at": datetime(2024, 1, 2, 3, 4, 5),
        "day": date(2024, 1, 2),
        "price": Decimal("9.5"),
        "tags": ["a", "b"]
    }

    restored = serializer.deserialize(serializer.serialize(test_data))
    assert restored["name"] == "产品分类"
    assert restored["created_at"] == datetime(2024, 1, 2, 3, 4, 5)
    assert restored["day"] == date(2024, 1, 2)
    assert restored["price"] == 9.5


def test_non_ascii_is_kept():
    """测试中文不转义"""
    assert "产品" in JSONSerializer().dumps({"name": "产品"})


def test_dict_helpers():
    """测试字典形式的序列化"""
    serializer = JSONSerializer()
    as_dict = serializer.serialize_to_dict({"when": datetime(2024, 5, 1)})
    assert as_dict == {"when": {"__type__": "datetime", "value": "2024-05-01T00:00:00"}}
    assert serializer.deserialize_from_dict(as_dict) == {"when": datetime(2024, 5, 1)}


def test_file_round_trip(tmp_path):
    """测试文件读写"""
    serializer = JSONSerializer(indent=2)
    path = tmp_path / "data.json"
    serializer.save_to_file({"rows": [1, 2, 3]}, str(path))
    assert serializer.load_from_file(str(path)) == {"rows": [1, 2, 3]}


def test_serialization_errors():
    """测试序列化失败"""
    serializer = JSONSerializer()
    with pytest.raises(SerializationError):
        serializer.dumps({"bad": object()})
    with pytest.raises(SerializationError):
        serializer.loads("{not json")
    with pytest.raises(SerializationError):
        serializer.deserialize(b"\xff\xfe")
