"""
FastAPI application for the Flowport REST API.

``create_app`` wires the routers and turns every error into an
ErrorResponse body; ``run_server`` serves it with uvicorn.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from flowport import __version__
from flowport.api.rest.models import ErrorResponse
from flowport.api.rest.routes import (
    export_import_router,
    executions_router,
    health_router,
)
from flowport.api.rest.dependencies import get_app_state, set_app_state, AppState
from flowport.domain.models.exceptions import FlowportError

logger = logging.getLogger(__name__)


def _error(status: int, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    body = ErrorResponse(
        error=code,
        message=message,
        details=details,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"))


def create_app(debug: bool = False, app_state: Optional[AppState] = None) -> FastAPI:
    """
    Build the application.

    Args:
        debug: Include exception text in 500 responses
        app_state: State to install instead of the process-wide default
    """
    if app_state is not None:
        set_app_state(app_state)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = get_app_state()
        if not state.is_initialized:
            state.initialize()
        logger.info(f"Flowport API {__version__} started (storage: {state.config.storage_mode})")
        yield

    app = FastAPI(
        title="Flowport API",
        description="Tenant export/import and execution tree reconstruction. "
                    "Callers identify themselves with X-User-Id and X-Organization-Id.",
        version=__version__,
        debug=debug,
        lifespan=lifespan,
    )

    @app.exception_handler(FlowportError)
    async def flowport_error_handler(request: Request, exc: FlowportError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _error(exc.http_status, exc.code, exc.message)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return _error(400, "VALIDATION_ERROR", str(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        if debug:
            return _error(500, "INTERNAL_ERROR", str(exc), {"type": type(exc).__name__})
        return _error(500, "INTERNAL_ERROR", "An unexpected error occurred")

    app.include_router(health_router)
    app.include_router(export_import_router)
    app.include_router(executions_router)

    return app


def get_app() -> FastAPI:
    """Application factory for uvicorn."""
    return create_app()


def run_server(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Serve the API (``flowport-api`` console script)."""
    import uvicorn
    from flowport.config import configure_logging

    configure_logging()
    uvicorn.run("flowport.api.rest.app:get_app", host=host, port=port, factory=True)
