"""
FastAPI Dependencies for dependency injection.

Following DIP (Dependency Inversion Principle):
- API layer depends on application services, never on repositories
- Services are injected via FastAPI dependency system
- Enables easy testing and swapping implementations

The requester identity is read from the X-User-Id and X-Organization-Id
headers set by the upstream authorization layer.
"""

from typing import Optional

from fastapi import Header

from flowport.application.factories import ExportImportServiceFactory
from flowport.application.services import ExportImportService
from flowport.config import FlowportConfig, get_config
from flowport.domain.models import Requester


# ═══════════════════════════════════════════════════════════════════════════════
# Application State (Singleton services)
# ═══════════════════════════════════════════════════════════════════════════════

class AppState:
    """
    Application state container.
    
    Holds singleton instances of services that are shared across requests.
    Initialized once at startup, used throughout the application lifetime.
    """
    
    def __init__(self):
        self._config: Optional[FlowportConfig] = None
        self._export_import_service: Optional[ExportImportService] = None
        self._initialized: bool = False
    
    def initialize(
        self,
        config: Optional[FlowportConfig] = None,
        export_import_service: Optional[ExportImportService] = None,
    ) -> None:
        """
        Initialize application state with services.
        
        Args:
            config: Configuration (default: global config)
            export_import_service: Pre-built service (default: built from config)
        """
        self._config = config or get_config()
        self._export_import_service = (
            export_import_service or ExportImportServiceFactory.create(self._config)
        )
        self._initialized = True
    
    @property
    def config(self) -> FlowportConfig:
        if self._config is None:
            self._config = get_config()
        return self._config
    
    @property
    def export_import_service(self) -> Optional[ExportImportService]:
        return self._export_import_service
    
    @property
    def is_initialized(self) -> bool:
        """Check if app state is initialized."""
        return self._initialized


# Global application state
_app_state: Optional[AppState] = None


def get_app_state() -> AppState:
    """Get the global application state."""
    global _app_state
    if _app_state is None:
        _app_state = AppState()
    return _app_state


def set_app_state(state: AppState) -> None:
    """Set the global application state (for testing)."""
    global _app_state
    _app_state = state


def reset_app_state() -> None:
    """Reset the global application state (for testing)."""
    global _app_state
    _app_state = None


# ═══════════════════════════════════════════════════════════════════════════════
# FastAPI Dependencies
# ═══════════════════════════════════════════════════════════════════════════════

def get_export_import_service() -> ExportImportService:
    """FastAPI dependency for the export/import service."""
    service = get_app_state().export_import_service
    if service is None:
        raise RuntimeError(
            "ExportImportService not initialized. "
            "Call AppState.initialize() at startup."
        )
    return service


def get_config_dependency() -> FlowportConfig:
    """FastAPI dependency for the active configuration."""
    return get_app_state().config


def get_requester(
    x_user_id: Optional[str] = Header(None),
    x_organization_id: Optional[str] = Header(None),
) -> Requester:
    """Identity of the caller; missing parts are rejected by the service."""
    return Requester(id=x_user_id, organization_id=x_organization_id)
