"""Application factory for FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) to improve testability compared to a monolithic main.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from throttle_service.adapters.rate_limit.sweeper import ExpiredEntrySweeper
from throttle_service.api.routes import health_router, throttle_router
from throttle_service.core.config import settings
from throttle_service.core.exception_handlers import setup_exception_handlers
from throttle_service.core.logging import configure_logging
from throttle_service.core.middleware import request_id_middleware
from throttle_service.core.openapi import apply_openapi_customizations
from throttle_service.core.rate_limit import get_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the expired-entry sweeper for the life of the app."""

    sweeper: ExpiredEntrySweeper | None = None
    if settings.rate_limit.sweep_enabled:
        sweeper = ExpiredEntrySweeper(
            get_rate_limiter,
            interval_seconds=settings.rate_limit.sweep_interval_seconds,
        )
        sweeper.start()
    app.state.sweeper = sweeper

    logger.info(
        "app.startup",
        extra={
            "app_env": settings.app_env,
            "rate_limit_enabled": settings.rate_limit.enabled,
            "sweep_enabled": sweeper is not None,
        },
    )
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.stop()
        logger.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Request Throttle API",
        description=(
            "Fixed-window request throttling per identifier. Exposes the named "
            "policy table and a decision endpoint; throttled routes answer 429 "
            "with Retry-After and X-RateLimit-* headers."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(throttle_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
