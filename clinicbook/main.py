"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinicbook.api.v1.router import api_router
from clinicbook.config import settings
from clinicbook.core.exceptions import AppException
from clinicbook.core.redis_client import check_redis_connection, close_redis_connection
from clinicbook.database import check_database_connection, engine
from clinicbook.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from clinicbook.middleware.logging import LoggingMiddleware, configure_logging
from clinicbook.services.notification_service import get_dispatcher

# Configure logging
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Checks dependencies on startup; on shutdown waits for in-flight booking
    notifications before closing connections.
    """
    logger.info(
        "application_startup",
        environment=settings.environment,
        lock_backend=settings.provider_lock_backend,
        notifications_enabled=settings.notifications_enabled,
    )

    if await check_database_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    if settings.provider_lock_backend == "redis":
        if await check_redis_connection():
            logger.info("redis_connected")
        else:
            logger.error("redis_connection_failed")

    try:
        get_dispatcher()
    except Exception as e:
        logger.warning(
            "firebase_initialization_failed",
            error=str(e),
            note="Set FIREBASE_CREDENTIALS_PATH or FIREBASE_CONFIG_JSON",
        )

    yield

    logger.info("application_shutdown")

    if get_dispatcher.cache_info().currsize:
        await get_dispatcher().drain()
        logger.info("notifications_drained")

    await engine.dispose()
    logger.info("database_connections_closed")

    await close_redis_connection()
    logger.info("redis_connection_closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Provider availability and conflict-free booking API",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Add exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)

# Include API router
app.include_router(api_router, prefix=settings.api_v1_prefix)

# Setup Prometheus instrumentation
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clinicbook.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
