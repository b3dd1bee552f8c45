"""
测试异常体系
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree.exceptions import (
    BaseError, ConfigurationError, InvalidOperandError, InvariantViolation,
    PersistenceFailure, DataStoreError, SerializationError, StorageError,
    NodeNotFoundError, TreeNotFoundError, TreeError, NodeError
)
from nested_tree.data.storage.exceptions import StorageConnectionError, StorageOperationError
from nested_tree.services.import_export import DataImportError


def test_exception_creation():
    """测试异常创建"""
    error = InvalidOperandError("目标节点无效", operation="make_first_child_of", node_id=3, reason="invalid_node")
    assert error.code == "INVALID_OPERAND"
    assert str(error) == "[INVALID_OPERAND] 目标节点无效"
    assert error.details == {"operation": "make_first_child_of", "node_id": 3, "reason": "invalid_node"}


def test_exception_to_dict():
    """测试异常序列化"""
    error = PersistenceFailure("树ID冲突", operation="new_root", attempts=5)
    data = error.to_dict()
    assert data["code"] == "PERSISTENCE_FAILURE"
    assert data["details"] == {"operation": "new_root", "attempts": 5}
    assert "timestamp" in data


def test_exception_inheritance():
    """测试异常继承关系"""
    assert issubclass(InvalidOperandError, NodeError)
    assert issubclass(NodeError, TreeError)
    assert issubclass(InvariantViolation, TreeError)
    assert issubclass(PersistenceFailure, StorageError)
    assert issubclass(SerializationError, DataStoreError)
    assert issubclass(StorageConnectionError, DataStoreError)
    assert issubclass(StorageOperationError, DataStoreError)
    assert issubclass(DataImportError, BaseError)
    for cls in (ConfigurationError, NodeNotFoundError, TreeNotFoundError, StorageError):
        assert issubclass(cls, BaseError)


def test_data_store_error_details():
    """测试存储异常详情"""
    error = StorageOperationError("disk full", operation="persist", store_type="sqlite")
    assert error.details["operation"] == "persist"
    assert error.details["store_type"] == "sqlite"
    assert "disk full" in str(error)


def test_invariant_violation():
    """测试不变量异常"""
    error = InvariantViolation("子节点数不是整数", node_id=1, value=0.5)
    assert error.code == "INVARIANT_VIOLATION"
    assert error.details["value"] == 0.5


def test_not_found_errors():
    """测试查找失败异常"""
    assert NodeNotFoundError(node_id=5).details["node_id"] == 5
    assert TreeNotFoundError(3).code == "TREE_NOT_FOUND"
