"""
配置模块
"""

from .settings import SystemSettings
from .tree_config import TreeConfig
from .validator import ConfigValidator

__all__ = ['SystemSettings', 'TreeConfig', 'ConfigValidator']
