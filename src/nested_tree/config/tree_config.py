"""
节点类型的树配置
在节点类型注册时解析一次，之后只读
"""
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional, Tuple

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class TreeConfig:
    """
    嵌套集树配置

    字段名全部可配置，存储层按这些名字读写行数据
    """

    left_field: str = "left_id"            # 左索引字段名
    right_field: str = "right_id"          # 右索引字段名
    tree_field: Optional[str] = None       # 树ID字段名（多棵树时使用）
    tree_value: Optional[int] = None       # 默认选中的树ID
    title_field: Optional[str] = None      # 节点标题字段名
    symlink_field: Optional[str] = "symlink_id"
    use_symlinks: bool = False
    primary_key: Tuple[str, ...] = ("id",)

    def __post_init__(self):
        # 允许传入单个字符串或列表
        if isinstance(self.primary_key, str):
            object.__setattr__(self, "primary_key", (self.primary_key,))
        elif not isinstance(self.primary_key, tuple):
            object.__setattr__(self, "primary_key", tuple(self.primary_key))

        if len(self.primary_key) != 1:
            raise ConfigurationError(
                message=f"嵌套集不支持多列主键: {self.primary_key}",
                config_key="primary_key"
            )

        for name in ("left_field", "right_field"):
            if not getattr(self, name):
                raise ConfigurationError(
                    message=f"缺少必需的配置项: {name}",
                    config_key=name
                )

        if self.left_field == self.right_field:
            raise ConfigurationError(
                message="左右索引字段不能相同",
                config_key="right_field"
            )

    @property
    def pk_field(self) -> str:
        """主键字段名"""
        return self.primary_key[0]

    @property
    def multi_tree(self) -> bool:
        """是否启用多棵树（按树ID分区）"""
        return self.tree_field is not None

    @property
    def readonly_fields(self) -> Tuple[str, ...]:
        """调用方不能直接设置的字段"""
        names = [self.left_field, self.right_field, self.tree_field, self.symlink_field]
        return tuple(name for name in names if name)

    @property
    def index_fields(self) -> Tuple[str, ...]:
        """存储层需要作为独立列维护的字段"""
        names = [self.pk_field, self.left_field, self.right_field, self.tree_field]
        if self.use_symlinks:
            names.append(self.symlink_field)
        return tuple(name for name in names if name)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        result["primary_key"] = list(self.primary_key)
        return result

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'TreeConfig':
        """从字典创建配置，忽略未知键"""
        valid_keys = {f.name for f in fields(cls)}
        filtered_config = {k: v for k, v in config_dict.items() if k in valid_keys}
        return cls(**filtered_config)
