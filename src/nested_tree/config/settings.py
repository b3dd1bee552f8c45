"""
系统配置设置
"""
import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict
from datetime import datetime

from ..exceptions import ConfigurationError


@dataclass
class SystemSettings:
    """
    系统配置类
    使用dataclass确保配置的类型安全
    """

    # 系统基本配置
    system_name: str = "nested_tree"
    version: str = "1.0.0"

    # 日志配置
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_logging: bool = True
    log_to_file: bool = False

    # 存储配置
    storage_backend: str = "memory"  # memory, json, sqlite
    storage_path: Optional[str] = None

    # 新建根节点时树ID冲突的最大重试次数
    tree_id_retry_limit: int = 5

    def __post_init__(self):
        """初始化后处理，验证配置"""
        self._validate_settings()
        self._set_defaults()

    def _validate_settings(self):
        """验证配置值"""
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ConfigurationError(
                message=f"无效的日志级别: {self.log_level}",
                config_key="log_level"
            )
        self.log_level = self.log_level.upper()

        valid_backends = ["memory", "json", "sqlite"]
        if self.storage_backend not in valid_backends:
            raise ConfigurationError(
                message=f"无效的存储后端: {self.storage_backend}",
                config_key="storage_backend"
            )

        if self.tree_id_retry_limit <= 0 or self.tree_id_retry_limit > 100:
            raise ConfigurationError(
                message=f"树ID重试次数必须在1-100之间: {self.tree_id_retry_limit}",
                config_key="tree_id_retry_limit"
            )

    def _set_defaults(self):
        """设置默认值"""
        # 设置默认存储路径
        if self.storage_backend in ["json", "sqlite"] and not self.storage_path:
            self.storage_path = os.path.join(
                os.getcwd(),
                "data",
                f"{self.system_name.lower().replace(' ', '_')}.{'json' if self.storage_backend == 'json' else 'db'}"
            )

        # 确保目录存在
        if self.storage_path:
            os.makedirs(os.path.dirname(os.path.abspath(self.storage_path)), exist_ok=True)

        # 只有显式要求写文件时才生成默认日志文件
        if not self.log_file and self.enable_logging and self.log_to_file:
            log_dir = os.path.join(os.getcwd(), "logs")
            os.makedirs(log_dir, exist_ok=True)
            self.log_file = os.path.join(
                log_dir,
                f"{datetime.now().strftime('%Y%m%d')}_{self.system_name.lower().replace(' ', '_')}.log"
            )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'SystemSettings':
        """从字典创建配置"""
        # 过滤无效的配置键
        valid_keys = {field.name for field in cls.__dataclass_fields__.values()}
        filtered_config = {k: v for k, v in config_dict.items() if k in valid_keys}

        return cls(**filtered_config)
