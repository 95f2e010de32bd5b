from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (limiter registry, middleware, handlers, routers)
so tests can build an app around an injected registry.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from reqlimit.api.routes import build_limit_router, health_router
from reqlimit.core.config import Settings, settings as default_settings
from reqlimit.core.errors import ConfigurationAppError
from reqlimit.core.exception_handlers import setup_exception_handlers
from reqlimit.core.logging import configure_logging
from reqlimit.core.middleware import request_id_middleware
from reqlimit.core.rate_limit import RateLimitGuard
from reqlimit.services.registry import LimiterRegistry

logger = logging.getLogger(__name__)


def create_app(
    registry: LimiterRegistry | None = None,
    app_settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    The registry is connected here, before the app is returned, so a
    misconfigured or unreachable store fails startup. Once the app is built
    it owns the registry and closes it once, at lifespan shutdown. If
    building fails, only a registry created here is closed.

    Args:
        registry: Pre-built registry; one is built from settings when omitted.
        app_settings: Settings override; the global settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.

    Raises:
        ConnectionAppError: If the store cannot be reached.
        ConfigurationAppError: If the store host or limiter definition is invalid.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    owns_registry = registry is None
    if registry is None:
        registry = LimiterRegistry.from_settings(cfg.store)

    try:
        limiter = registry.new_limiter(
            cfg.limiter.name,
            interval=cfg.limiter.interval_seconds,
            limit=cfg.limiter.limit,
        )
    except ConfigurationAppError:
        # A caller-supplied registry stays open; the caller still owns it
        if owns_registry:
            registry.close()
        raise

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            registry.close()
            logger.info("registry.closed")

    app = FastAPI(
        title="reqlimit",
        description=(
            "Per-client request limiting over a shared Redis counter. "
            "Requests beyond the configured quota within a fixed window "
            "are answered with 403."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.limiter = limiter

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(build_limit_router(RateLimitGuard(limiter, cfg.limiter)))
    app.include_router(health_router)

    return app
