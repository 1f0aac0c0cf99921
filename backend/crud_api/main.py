"""
CRUD API main application.
Entry point for the FastAPI server.

Usage:
    app = create_app(build_crud_router("/books", get_book_service))

Without routers, the ones listed in the API_ROUTERS setting are mounted:
    uvicorn crud_api.main:create_app --factory
"""

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.logging import setup_logging, crud_api_logger as logger
from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware
from shared.infrastructure.db import resolve_object
from shared.utils.exceptions import ConfigurationError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()

    config_errors = settings.validate_production()
    if config_errors:
        for error in config_errors:
            logger.error("Configuration error: %s", error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(config_errors)}. "
                "Server will not start with unsafe configuration."
            )
        logger.warning("Running with unsafe defaults (acceptable for development only)")

    logger.info("Starting CRUD API", port=settings.api_port, env=settings.environment)

    yield

    logger.info("Shutting down CRUD API")


def configured_routers() -> list[APIRouter]:
    """Resolve the routers listed in settings."""
    routers = []
    for path in settings.api_routers:
        router = resolve_object(path)
        if not isinstance(router, APIRouter):
            raise ConfigurationError(f"'{path}' is not an APIRouter")
        routers.append(router)
    return routers


def create_app(*routers: APIRouter, title: str = "CRUD API") -> FastAPI:
    """Create the FastAPI application mounting `routers`."""
    app = FastAPI(
        title=title,
        description="Generic CRUD service API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    @app.get("/api/health")
    def health_check():
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "service": "crud-api",
            "environment": settings.environment,
        }

    for router in routers or configured_routers():
        app.include_router(router)

    return app
