"""
数据导入器基类
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional

from nested_tree.exceptions import BaseError


class DataImportError(BaseError):
    """导入过程异常"""
    def __init__(self, message: str, source: Optional[str] = None, row: Optional[int] = None, **kwargs):
        details = {}
        if source is not None:
            details["source"] = source
        if row is not None:
            details["row"] = row
        super().__init__(message, code="IMPORT_ERROR", details=details, **kwargs)


class DataImporter(ABC):
    """数据导入器抽象基类"""

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}
        self._validate_config()

    def _validate_config(self):
        """验证配置参数"""
        pass

    @abstractmethod
    def validate_source(self, source: Any) -> bool:
        """验证数据源是否可导入"""
        pass

    @abstractmethod
    def parse_data(self, source: Any) -> List[Dict[str, Any]]:
        """解析数据为标准化格式"""
        pass

    @abstractmethod
    def build_tree(self, data: List[Dict[str, Any]]) -> List[Any]:
        """把标准化数据写入树，返回创建的树根"""
        pass

    def import_data(self, source: Any) -> List[Any]:
        """
        导入数据的完整流程
        1. 验证数据源
        2. 解析数据
        3. 写入树
        """
        if not self.validate_source(source):
            raise DataImportError(f"数据源验证失败: {source}", source=str(source))

        data = self.parse_data(source)
        return self.build_tree(data)
