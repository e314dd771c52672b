"""
PostgreSQL Async Database Client

Uses SQLAlchemy 2.0 with asyncpg for async database operations. The handle is
constructed explicitly at process start (see `codex_cms.api.main.lifespan`),
shared through `app.state`, and disposed on shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from codex_cms.config import Settings

logger = structlog.get_logger()


class Database:
    """Pooled connection handle to the relational store."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def host(self) -> str | None:
        return make_url(self._settings.database_url).host

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """Initialize the database connection pool."""
        if self._engine is not None:
            return

        settings = self._settings
        engine_kwargs: dict[str, object] = {
            "echo": settings.log_level == "DEBUG",
        }
        if settings.db_pool_mode == "null":
            engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs["pool_size"] = max(1, int(settings.db_pool_size))
            engine_kwargs["max_overflow"] = max(0, int(settings.db_pool_max_overflow))
            engine_kwargs["pool_timeout"] = max(1, int(settings.db_pool_timeout_seconds))
            engine_kwargs["pool_recycle"] = max(60, int(settings.db_pool_recycle_seconds))
            engine_kwargs["pool_pre_ping"] = True

        self._engine = create_async_engine(settings.database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        logger.info(
            "Database connection pool initialized",
            host=self.host,
            pool_mode=settings.db_pool_mode,
        )

    async def dispose(self) -> None:
        """Close the database connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection pool closed")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Open a session that runs inside a single transaction.

        Commits when the block exits cleanly, rolls back on any exception.

        Usage:
            async with db.session() as session:
                result = await session.execute(...)
        """
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()
