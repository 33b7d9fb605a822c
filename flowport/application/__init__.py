"""
Application Layer - Service implementations and use case orchestration.

This layer coordinates domain objects and the persistence ports:
- Execution tree reconstruction
- Tenant export/import
"""

from .services.execution_tree_builder import build_execution_tree
from .services.export_import_service import ExportImportService

__all__ = [
    "build_execution_tree",
    "ExportImportService",
]
