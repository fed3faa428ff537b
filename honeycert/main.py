"""
HoneyCert - Main Application
FastAPI entry point for the multi-tenant honey certification backend
"""

import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from honeycert.api import admin_router, batches_router
from honeycert.config import Settings, settings
from honeycert.database import (
    CatalogQueryError,
    ConfigurationError,
    DatabaseTimeoutError,
    TenantAlreadyExistsError,
    TenantConnectionFailedError,
    TenantInactiveError,
    TenantNotFoundError,
    TenantRoutingException,
    build_tenant_routing,
)
from honeycert.middleware.tenant_context import TenantContext


def configure_logging(config: Settings = settings) -> None:
    """Configure Loguru sinks: colorized stdout plus an optional rotating file."""
    logger.remove()
    logger.add(
        sys.stdout,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=config.log_level
    )

    if config.log_to_file:
        os.makedirs(config.log_dir, exist_ok=True)
        logger.add(
            f"{config.log_dir}/{config.log_file}",
            rotation=config.log_rotation,
            retention=config.log_retention,
            level=config.log_level
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application Lifespan Manager

    Startup builds the connection routing services and starts the idle sweeper.
    Shutdown (uvicorn runs it on SIGINT/SIGTERM) drains every connection,
    falling back to a forced drain if the graceful one times out.
    """
    logger.info("=" * 80)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 80)

    if getattr(app.state, "routing", None) is None:
        app.state.routing = build_tenant_routing(settings)
    routing = app.state.routing
    routing.sweeper.start()

    yield

    logger.info("=" * 80)
    logger.info("Shutting down application...")
    await routing.shutdown()
    logger.info("=" * 80)


# =============================================================================
# Exception Handlers
# =============================================================================

_ERROR_RESPONSES = [
    # Order matters: TenantInactiveError subclasses TenantNotFoundError
    (TenantInactiveError, status.HTTP_403_FORBIDDEN, "Tenant is not active"),
    (TenantNotFoundError, status.HTTP_404_NOT_FOUND, "Tenant not found"),
    (TenantAlreadyExistsError, status.HTTP_409_CONFLICT, "Tenant already exists"),
    (DatabaseTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "Database request timed out, please retry"),
    (TenantConnectionFailedError, status.HTTP_503_SERVICE_UNAVAILABLE, "Database temporarily unavailable, please retry"),
    (CatalogQueryError, status.HTTP_503_SERVICE_UNAVAILABLE, "Database temporarily unavailable, please retry"),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Service is not configured"),
]


async def tenant_routing_exception_handler(request: Request, exc: TenantRoutingException):
    """
    Map routing errors to HTTP responses.
    Connection strings and driver messages stay in the logs.
    """
    status_code, detail = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
    for exc_type, code, message in _ERROR_RESPONSES:
        if isinstance(exc, exc_type):
            status_code, detail = code, message
            break

    tenant_id = exc.details.get("tenant_id") or TenantContext.get_tenant_id()
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")

    content = {"error": detail}
    if tenant_id:
        content["tenant_id"] = tenant_id
    return JSONResponse(status_code=status_code, content=content)


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )


# =============================================================================
# Application
# =============================================================================

def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Multi-tenant honey certification backend",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TenantRoutingException, tenant_routing_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/health")
    async def health_check(request: Request):
        """
        Health check endpoint
        Returns application status and cached tenant connection count
        """
        routing = getattr(request.app.state, "routing", None)
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "tenant_connections": len(routing.registry) if routing else 0,
            "master_connected": routing.master.is_initialized if routing else False,
        }

    app.include_router(batches_router, prefix="/api/batches", tags=["Batches"])
    app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])

    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on {settings.host}:{settings.port}")

    uvicorn.run(
        "honeycert.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
