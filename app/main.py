"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (one per bounded context)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting)
- Logging configuration
- Market data pipeline (scheduler, broadcaster, WebSocket/SSE)

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from app.core.config import Settings, settings as default_settings
from app.core.container import Container, build_container
from app.infrastructure.database import init_schema
from app.interfaces.auth.router import router as auth_router
from app.interfaces.health import router as health_router
from app.interfaces.realtime import router as realtime_router
from app.interfaces.trading.router import router as trading_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.security.headers import SecurityHeadersMiddleware
from app.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


def _lifespan(settings: Settings, container: Optional[Container]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build services, prepare the schema, and run the market scheduler."""
        services = container or build_container(settings)
        # A backend we cannot initialize is fatal: refuse to start.
        init_schema(services.engine)
        app.state.container = services

        if settings.market_stream_enabled:
            services.scheduler.start()
        else:
            logger.info("Market stream disabled; rates are only fetched on demand.")

        try:
            yield
        finally:
            services.scheduler.stop()
            await services.aclose()
            logger.info("Shutdown complete.")

    return lifespan


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[Container] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Args:
        settings: Settings to use instead of the environment-loaded ones.
        container: Pre-built services (tests inject fakes through this).

    Returns:
        A fully configured FastAPI application instance.
    """
    settings = settings or default_settings
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=_lifespan(settings, container),
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.debug)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(trading_router, prefix="/api/v1")
    app.include_router(realtime_router, prefix="/api/v1")

    return app


app = create_app()
