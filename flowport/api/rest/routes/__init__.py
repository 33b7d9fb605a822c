"""
REST API Routes.

Provides:
- /api/v1/export-import - Tenant export and import
- /api/v1/executions - Execution tree reconstruction
- /api/v1/health - Health checks
"""

from .export_import import router as export_import_router
from .executions import router as executions_router
from .health import router as health_router

__all__ = [
    "export_import_router",
    "executions_router",
    "health_router",
]
