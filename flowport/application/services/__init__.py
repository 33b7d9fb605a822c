"""Application services - Use cases over the domain models."""

from .execution_tree_builder import (
    build_execution_tree,
    derive_iteration_status,
    find_node,
    collect_statuses,
    aggregate_status,
    scrub_credentials,
)
from .export_import_service import ExportImportService
from .id_remapper import IdRemapper
from .organization_locks import OrganizationLockRegistry

__all__ = [
    "build_execution_tree",
    "derive_iteration_status",
    "find_node",
    "collect_statuses",
    "aggregate_status",
    "scrub_credentials",
    "ExportImportService",
    "IdRemapper",
    "OrganizationLockRegistry",
]
