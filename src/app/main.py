"""FastAPI application factory and main entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.api.v1 import api_router
from app.core.config import get_settings
from app.services.swap.errors import SwapError

logger = logging.getLogger(__name__)

# HTTP status per workflow error code
ERROR_STATUS_CODES = {
    "NOT_FOUND": 404,
    "INVALID_STATE": 409,
    "UNAUTHORIZED": 403,
    "EXPIRED": 410,
    "CONFLICT": 409,
    "EXECUTION_FAILED": 502,
    "VALIDATION": 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup/shutdown events."""
    # Startup
    settings = get_settings()
    app.state.settings = settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info(f"Starting {settings.app_name} ({settings.environment})")

    yield

    # Shutdown
    logger.info(f"Stopping {settings.app_name}")


async def swap_error_handler(request: Request, exc: SwapError) -> JSONResponse:
    """Render workflow errors as the structured error body."""
    status_code = ERROR_STATUS_CODES.get(exc.code, 500)
    if status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Shift swap approval API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SwapError, swap_error_handler)

    # Register routes
    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all application routes."""
    settings = get_settings()

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get(f"{settings.api_v1_prefix}/", tags=["API"])
    async def api_root():
        """API root endpoint with application info."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "docs_url": "/docs" if settings.debug else "Disabled in production",
        }


# Create application instance
app = create_app()
