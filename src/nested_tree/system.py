"""
嵌套集树系统主入口
集成配置、日志、存储和节点类型注册，提供统一的管理接口
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Any, Union
from datetime import datetime

from .exceptions import ConfigurationError, ValidationError
from .config.settings import SystemSettings
from .config.tree_config import TreeConfig
from .config.validator import ConfigValidator

from .core.node import NodeRepository
from .data.storage import NodeStoreAdapter, create_store


class NestedTreeSystem:
    """
    嵌套集树系统主类
    每种节点类型注册一次，得到该类型的节点仓库
    """

    def __init__(
            self,
            config: Optional[Dict[str, Any]] = None,
            storage: Optional[NodeStoreAdapter] = None
    ):
        """
        初始化系统

        Args:
            config: 系统配置字典
            storage: 存储适配器，供第一个未指定存储的节点类型使用
        """
        # 加载配置
        self.validator = ConfigValidator()
        if config:
            self.validator.validate_system_config(config)
        self.settings = SystemSettings.from_dict(config) if config else SystemSettings()

        # 初始化日志
        self._setup_logging()
        self.logger = logging.getLogger(__name__)

        self._default_storage = storage

        # 节点类型 -> 节点仓库
        self._repositories: Dict[str, NodeRepository] = {}

        self._start_time = datetime.now()
        self.logger.info(f"{self.settings.system_name} 初始化完成, 存储后端: {self.settings.storage_backend}")

    def _setup_logging(self):
        """配置日志系统"""
        if not self.settings.enable_logging:
            return

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if self.settings.log_file:
            handlers.append(logging.FileHandler(self.settings.log_file, encoding='utf-8'))

        logging.basicConfig(
            level=getattr(logging, self.settings.log_level),
            format=self.settings.log_format,
            handlers=handlers
        )

    # ========== 节点类型管理 ==========

    def register_node_type(
            self,
            name: str,
            tree_config: Union[TreeConfig, Dict[str, Any], None] = None,
            storage: Optional[NodeStoreAdapter] = None
    ) -> NodeRepository:
        """
        注册节点类型

        Args:
            name: 节点类型名称
            tree_config: 树配置（TreeConfig 或字典），默认使用全部默认字段
            storage: 该节点类型的存储；未指定时按系统配置创建

        Returns:
            节点仓库

        Raises:
            ValidationError: 名称不合法或已注册
            ConfigurationError: 树配置无效，或与存储绑定的配置不一致
        """
        if not self.validator.validate_identifier(name):
            raise ValidationError(
                message=f"节点类型名称不合法: {name}",
                field="node_type",
                value=name,
                reason="invalid_identifier"
            )
        if name in self._repositories:
            raise ValidationError(
                message=f"节点类型已注册: {name}",
                field="node_type",
                value=name,
                reason="duplicate"
            )

        config = self.validator.validate_tree_config(tree_config or TreeConfig())

        if storage is None and self._default_storage is not None:
            storage, self._default_storage = self._default_storage, None
        if storage is None:
            storage = self._create_storage(name, config)
        elif storage.tree_config != config:
            raise ConfigurationError(
                message=f"存储绑定的树配置与节点类型 {name} 不一致",
                config_key="tree_config"
            )

        repository = NodeRepository(name, config, storage,
                                    retry_limit=self.settings.tree_id_retry_limit)
        self._repositories[name] = repository
        self.logger.info(f"注册节点类型: {name} ({storage.store_type})")
        return repository

    def _create_storage(self, name: str, config: TreeConfig) -> NodeStoreAdapter:
        """按系统配置为节点类型创建存储"""
        backend = self.settings.storage_backend
        if backend == 'memory':
            return create_store('memory', tree_config=config)

        path = Path(self.settings.storage_path)
        if backend == 'json':
            # 每种节点类型一个文件
            file_path = path.with_name(f"{path.stem}_{name}{path.suffix or '.json'}")
            return create_store('json', file_path=str(file_path), tree_config=config)

        # 每种节点类型一张表
        return create_store('sqlite', db_path=str(path), tree_config=config, table=name)

    def get_repository(self, name: str) -> NodeRepository:
        """获取节点类型的仓库"""
        if name not in self._repositories:
            raise ValidationError(
                message=f"节点类型未注册: {name}",
                field="node_type",
                value=name,
                reason="not_registered"
            )
        return self._repositories[name]

    def list_node_types(self) -> List[str]:
        """列出所有已注册的节点类型"""
        return sorted(self._repositories)

    def close(self) -> None:
        """关闭所有存储"""
        for repository in self._repositories.values():
            repository.store.close()

    # ========== 系统信息 ==========

    def get_system_info(self) -> Dict[str, Any]:
        """获取系统信息"""
        return {
            "system_name": self.settings.system_name,
            "version": self.settings.version,
            "start_time": self._start_time.isoformat(),
            "uptime": str(datetime.now() - self._start_time),
            "node_types": {
                name: repo.get_stats() for name, repo in self._repositories.items()
            },
            "settings": {
                "storage_backend": self.settings.storage_backend,
                "tree_id_retry_limit": self.settings.tree_id_retry_limit,
                "log_level": self.settings.log_level
            }
        }

    def health_check(self) -> Dict[str, Any]:
        """
        系统健康检查

        对每棵树检查树根的右索引是否等于实际节点数的两倍
        """
        status = {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "node_types": {}
        }

        issues = []
        for name, repo in self._repositories.items():
            trees = {}
            for tree_id in repo.list_trees():
                root = repo.get_root(tree_id)
                size = repo.count_nodes(tree_id)
                healthy = root.left == 1 and root.right == size * 2
                trees[str(tree_id)] = {"nodes": size, "healthy": healthy}
                if not healthy:
                    issues.append(f"{name}:{tree_id}")
            status["node_types"][name] = trees

        # 检查是否有不健康的树
        if issues:
            status["status"] = "degraded"
            status["issues"] = issues

        return status

    def __repr__(self) -> str:
        return f"NestedTreeSystem(node_types={len(self._repositories)}, backend={self.settings.storage_backend})"
