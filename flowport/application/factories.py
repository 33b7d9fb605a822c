"""
Application Factories.

Factory pattern for creating application services with proper dependency
injection from a FlowportConfig.
"""

from typing import Optional

from flowport.config import FlowportConfig, create_unit_of_work_factory, get_config
from flowport.infrastructure.database import InMemoryStore, InMemoryUnitOfWork

from .services.export_import_service import ExportImportService
from .services.organization_locks import OrganizationLockRegistry


class ExportImportServiceFactory:
    """Factory for creating ExportImportService with proper dependencies."""
    
    @staticmethod
    def create(config: Optional[FlowportConfig] = None) -> ExportImportService:
        """Create ExportImportService based on configuration."""
        if config is None:
            config = get_config()
        
        return ExportImportService(
            uow_factory=create_unit_of_work_factory(config),
            lock_registry=OrganizationLockRegistry() if config.import_lock_enabled else None,
            file_name=config.export_file_name,
        )
    
    @staticmethod
    def create_for_testing(store: Optional[InMemoryStore] = None) -> ExportImportService:
        """
        Create ExportImportService over an in-memory store.

        Pass ``store`` to seed or inspect committed rows from the test.
        """
        shared = store if store is not None else InMemoryStore()
        return ExportImportService(
            uow_factory=lambda: InMemoryUnitOfWork(shared),
            lock_registry=OrganizationLockRegistry(),
        )
