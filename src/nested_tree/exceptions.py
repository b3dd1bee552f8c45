"""
嵌套集树异常体系
"""
from datetime import datetime
from typing import Dict, Any, Optional


class BaseError(Exception):
    """所有异常的基类"""
    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        self.context = context or {}
        self.timestamp = datetime.now()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，便于序列化"""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


# ==================== 配置和验证异常 ====================
class ConfigurationError(BaseError):
    """配置错误（节点类型注册时即为致命错误）"""
    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, code="CONFIG_ERROR", details=details, **kwargs)


class ValidationError(BaseError):
    """数据验证错误"""
    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        details = {
            "field": field,
            "value": value,
            "reason": reason
        }
        super().__init__(message, code="VALIDATION_ERROR", details=details, **kwargs)


# ==================== 树结构相关异常 ====================
class TreeError(BaseError):
    """树结构错误基类"""
    pass


class TreeNotFoundError(TreeError):
    """树（分区）不存在"""
    def __init__(self, tree_id: Any, **kwargs):
        super().__init__(
            message=f"树不存在: {tree_id}",
            code="TREE_NOT_FOUND",
            details={"tree_id": tree_id},
            **kwargs
        )


class NodeError(TreeError):
    """节点操作错误"""
    pass


class NodeNotFoundError(NodeError):
    """节点不存在"""
    def __init__(self, node_id: Any = None, tree_id: Any = None, **kwargs):
        details = {}
        if node_id is not None:
            details["node_id"] = node_id
        if tree_id is not None:
            details["tree_id"] = tree_id

        message = "节点不存在"
        if node_id is not None:
            message += f": id={node_id}"

        super().__init__(message, code="NODE_NOT_FOUND", details=details, **kwargs)


class InvalidOperandError(NodeError):
    """操作数无效：节点类型不符、节点未保存、跨分区操作或非法的移动目标"""
    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        node_id: Any = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        details = {"operation": operation, "node_id": node_id, "reason": reason}
        super().__init__(message, code="INVALID_OPERAND", details=details, **kwargs)


class InvariantViolation(TreeError):
    """结构计算得到非整数或负数结果，说明存储的树已经损坏"""
    def __init__(self, message: str, node_id: Any = None, value: Any = None, **kwargs):
        super().__init__(
            message=f"嵌套集不变量被破坏: {message}",
            code="INVARIANT_VIOLATION",
            details={"node_id": node_id, "value": value},
            **kwargs
        )


# ==================== 存储相关异常 ====================
class StorageError(BaseError):
    """存储错误"""
    pass


class StorageNotFoundError(StorageError):
    """存储未找到"""
    def __init__(self, storage_type: str, **kwargs):
        super().__init__(
            message=f"存储类型不存在: {storage_type}",
            code="STORAGE_NOT_FOUND",
            details={"storage_type": storage_type},
            **kwargs
        )


class DataStoreError(StorageError):
    """数据存储异常"""
    def __init__(self, message: str, operation: str = None, store_type: str = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        details.update({"operation": operation, "store_type": store_type})
        super().__init__(
            message=f"存储错误[{operation or 'unknown'}]: {message}",
            code=kwargs.pop("code", "DATA_STORE_ERROR"),
            details=details,
            **kwargs
        )


class SerializationError(DataStoreError):
    """序列化异常"""
    def __init__(self, message: str, data_type: str = None, **kwargs):
        super().__init__(
            message=f"序列化错误: {message}",
            operation="SERIALIZATION",
            store_type="serialization",
            details={"data_type": data_type},
            **kwargs
        )


class PersistenceFailure(StorageError):
    """多行变更过程中持久化失败，整个原子批次已回滚"""
    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        attempts: Optional[int] = None,
        **kwargs
    ):
        details = {"operation": operation}
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(
            message=f"持久化失败[{operation or 'unknown'}]: {message}",
            code="PERSISTENCE_FAILURE",
            details=details,
            **kwargs
        )
