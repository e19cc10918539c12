"""
FastAPI application

    uvicorn xrtraining.api.main:app

Versioned routes live under API_PREFIX (default /api/v1); /health and
/metrics stay at the root for health checks and scrapers.
"""
import logging
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..core.config import Settings, get_settings
from ..core.logging_config import setup_logging
from .exceptions import register_exception_handlers
from .routers import materials, metrics, programs, progress, relationships
from .schemas.common import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

# Documented error bodies of the versioned routes
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="XR Training Core API",
        version=__version__,
        description="Training materials, related-material graph, quiz submissions and progress.",
    )
    register_exception_handlers(app)

    app.include_router(materials.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)
    app.include_router(relationships.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)
    app.include_router(programs.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)
    app.include_router(progress.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)
    app.include_router(metrics.router)

    @app.get("/health", response_model=HealthResponse, tags=["Monitoring"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    logger.info("Application created", extra={"api_prefix": settings.api_prefix, "version": __version__})
    return app


app = create_app()
