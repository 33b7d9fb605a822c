"""
Health check endpoints.

Provides:
- /health - Overall health status
- /health/ready - Readiness check
- /health/live - Liveness check
"""

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter

from flowport import __version__
from flowport.api.rest.models import HealthResponse
from flowport.api.rest.dependencies import get_app_state

router = APIRouter(prefix="/api/v1/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Overall health check.
    
    Returns status of all components.
    """
    state = get_app_state()
    
    components = {
        "api": "healthy",
        "export_import_service": "healthy" if state.export_import_service else "not_configured",
        "storage": state.config.storage_mode,
    }
    
    overall_status: Literal["healthy", "degraded", "unhealthy"]
    if "not_configured" in components.values():
        overall_status = "degraded"
    else:
        overall_status = "healthy"
    
    return HealthResponse(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        components=components,
    )


@router.get("/ready")
async def readiness_check() -> dict:
    """
    Readiness check for load balancers.
    
    Returns 200 if ready to receive traffic.
    """
    state = get_app_state()
    ready = state.is_initialized and state.export_import_service is not None
    
    return {
        "ready": ready,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/live")
async def liveness_check() -> dict:
    """
    Liveness check for orchestrators.
    
    Returns 200 if process is alive.
    """
    return {
        "alive": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
