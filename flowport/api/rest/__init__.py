"""
REST API implementation using FastAPI.

Provides:
- Tenant export and import
- Execution tree reconstruction
- Health checks

Models can be imported without starting the app; create_app/get_app build
the FastAPI application lazily.
"""

def create_app(*args, **kwargs):
    """Create the FastAPI app."""
    from .app import create_app as _create_app
    return _create_app(*args, **kwargs)

def get_app(*args, **kwargs):
    """Build the FastAPI app for uvicorn."""
    from .app import get_app as _get_app
    return _get_app(*args, **kwargs)

from .models import (
    ImportResponse,
    ExecutionTreeRequest,
    ExecutionTreeResponse,
    TreeNodeSchema,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    # App
    "create_app",
    "get_app",
    # Export/import models
    "ImportResponse",
    # Execution tree models
    "ExecutionTreeRequest",
    "ExecutionTreeResponse",
    "TreeNodeSchema",
    # Common models
    "ErrorResponse",
    "HealthResponse",
]
