"""
配置验证器
"""
import re
from typing import Dict, Any, Union

from ..exceptions import ValidationError, ConfigurationError
from .tree_config import TreeConfig


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        # 字段名会拼进SQL语句，只允许合法标识符
        self._identifier_pattern = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

    def validate_system_config(self, config: Dict[str, Any]) -> bool:
        """验证系统配置"""
        try:
            # 验证必需字段
            required_fields = ['system_name', 'storage_backend']
            for field in required_fields:
                if field not in config:
                    raise ValidationError(
                        message=f"缺少必需配置项: {field}",
                        field=field,
                        reason="required_field_missing"
                    )

            # 验证存储后端
            valid_storages = ['memory', 'json', 'sqlite']
            if config.get('storage_backend') not in valid_storages:
                raise ValidationError(
                    message=f"无效的存储后端: {config.get('storage_backend')}",
                    field="storage_backend",
                    value=config.get('storage_backend'),
                    reason=f"必须是 {valid_storages} 之一"
                )

            # 验证重试次数
            if 'tree_id_retry_limit' in config:
                limit = config['tree_id_retry_limit']
                if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
                    raise ValidationError(
                        message="树ID重试次数必须是正整数",
                        field="tree_id_retry_limit",
                        value=limit,
                        reason="invalid_value"
                    )

            return True

        except ValidationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"配置验证失败: {str(e)}")

    def validate_tree_config(self, config: Union[TreeConfig, Dict[str, Any]]) -> TreeConfig:
        """
        验证并冻结树配置

        Args:
            config: TreeConfig 实例或配置字典

        Returns:
            验证通过的 TreeConfig

        Raises:
            ConfigurationError: 多列主键、缺少必需字段或字段名冲突
            ValidationError: 字段名不是合法标识符
        """
        if isinstance(config, dict):
            config = TreeConfig.from_dict(config)

        if not isinstance(config, TreeConfig):
            raise ConfigurationError(
                message=f"无效的树配置类型: {type(config).__name__}",
                config_key="tree"
            )

        names = {
            'left_field': config.left_field,
            'right_field': config.right_field,
            'tree_field': config.tree_field,
            'title_field': config.title_field,
            'symlink_field': config.symlink_field,
            'primary_key': config.pk_field,
        }
        for key, name in names.items():
            if name is None:
                continue
            if not self.validate_identifier(name):
                raise ValidationError(
                    message=f"无效的字段名: {name}",
                    field=key,
                    value=name,
                    reason="invalid_identifier"
                )

        # 结构字段不能重名
        structural = [n for n in config.index_fields]
        if len(set(structural)) != len(structural):
            raise ConfigurationError(
                message=f"结构字段名重复: {structural}",
                config_key="tree"
            )

        if config.title_field and config.title_field in config.readonly_fields:
            raise ConfigurationError(
                message=f"标题字段不能是只读的结构字段: {config.title_field}",
                config_key="title_field"
            )

        if config.use_symlinks and not config.symlink_field:
            raise ConfigurationError(
                message="启用符号链接时必须配置 symlink_field",
                config_key="symlink_field"
            )

        if config.tree_value is not None and not config.multi_tree:
            raise ConfigurationError(
                message="未配置 tree_field 时不能设置 tree_value",
                config_key="tree_value"
            )

        return config

    def validate_identifier(self, name: str) -> bool:
        """验证字段名格式"""
        return isinstance(name, str) and bool(self._identifier_pattern.match(name))
