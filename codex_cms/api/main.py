"""
Codex CMS - FastAPI Application

Content core for the admin application and the public site:
- Admin CRUD for pages, blog posts, case studies and services
- Ordered block composition per entity
- Public read endpoints for published content
- User roles and API keys
- Site settings
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from codex_cms import __version__
from codex_cms.api.middleware import (
    RequestIDMiddleware,
    RequestMetricsMiddleware,
    SecurityHeadersMiddleware,
    get_cors_origins,
)
from codex_cms.api.routes import api_keys, blocks, content, health, public, site_settings, users
from codex_cms.config import Settings, get_settings
from codex_cms.db import Database
from codex_cms.db.accounts import SqlAccountStore
from codex_cms.db.site_settings import SqlSiteSettingsStore
from codex_cms.db.store import SqlContentStore
from codex_cms.kernel.http.errors import register_exception_handlers
from codex_cms.monitoring import get_metrics
from codex_cms.net.dns_cache import DNSCache

API_PREFIX = "/api/v1"

# Map log level string to logging constant
_LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
            if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LOG_LEVEL_MAP.get(settings.log_level.lower(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(get_settings())
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - build the shared handles, dispose them on shutdown."""
    settings: Settings = app.state.settings

    logger.info(
        "Starting Codex CMS",
        version=__version__,
        environment=settings.environment,
    )

    db = Database(settings)
    await db.connect()
    app.state.db = db
    app.state.content_store = SqlContentStore(db)
    app.state.account_store = SqlAccountStore(db)
    app.state.site_settings_store = SqlSiteSettingsStore(db)
    app.state.dns_cache = DNSCache(ttl_seconds=settings.dns_cache_ttl_seconds)

    yield

    logger.info("Shutting down Codex CMS")
    await db.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Codex CMS API",
        description="Content core: localized entities, ordered blocks, publishing workflow",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    register_exception_handlers(app)

    # Middleware order matters - first added = last executed
    app.add_middleware(RequestMetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())
    get_metrics().set_build_info(__version__)

    app.include_router(health.router, tags=["Health"])
    for router in content.routers:
        app.include_router(router, prefix=API_PREFIX)
    app.include_router(blocks.router, prefix=API_PREFIX)
    app.include_router(public.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(api_keys.router, prefix=API_PREFIX)
    app.include_router(site_settings.router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Codex CMS API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics",
        }

    return app


app = create_app()
