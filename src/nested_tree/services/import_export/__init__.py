"""
导入导出服务
"""

from .base_importer import DataImporter, DataImportError
from .outline_importer import OutlineImporter
from .exporter import DumpExporter

__all__ = ['DataImporter', 'DataImportError', 'OutlineImporter', 'DumpExporter']
