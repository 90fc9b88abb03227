"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator, metrics

from app.api.v1.router import api_router
from app.config import settings
from app.core.redis_client import check_redis_connection, close_redis_connection
from app.database import check_database_connection, engine
from app.middleware.error_handler import register_exception_handlers
from app.middleware.logging import LoggingMiddleware, configure_logging

# Configure logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    The service starts even when a dependency is down: the store failure
    surfaces per request as a 503 and the rate limiter fails open.
    """
    logger.info(
        "application_startup",
        environment=settings.environment,
        public_base_url=settings.public_base_url,
        public_rate_limit_per_minute=settings.public_rate_limit_per_minute,
    )

    if await check_database_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    if await check_redis_connection():
        logger.info("redis_connected")
    else:
        logger.warning("redis_unavailable_rate_limiting_disabled")

    yield

    logger.info("application_shutdown")
    await engine.dispose()
    close_redis_connection()
    logger.info("connections_closed")


def setup_metrics(app: FastAPI) -> None:
    """Expose Prometheus metrics at /metrics."""
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics", ".*/health.*", ".*/ping"],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )
    # Handlers are labelled by route template, so tokens never become label values
    instrumentator.add(
        metrics.default(
            metric_namespace="clinic",
            latency_lowr_buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
        )
    )
    instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Appointment lifecycle, public confirmation links, "
        "no-show blocking and clinic reports"
    ),
    # API docs are not published in production
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
    lifespan=lifespan,
)

# Staff dashboard and the patient confirmation page call the API from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)
app.add_middleware(LoggingMiddleware)

register_exception_handlers(app)
app.include_router(api_router, prefix=settings.api_v1_prefix)
setup_metrics(app)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Service name, version and where to find the API docs."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "api": settings.api_v1_prefix,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
