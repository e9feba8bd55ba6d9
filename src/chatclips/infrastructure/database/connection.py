"""Database connection and session management.

This module provides async database session management using SQLAlchemy 2.0
with connection pooling and committing session scopes.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import DatabaseConfig

logger = logging.getLogger(__name__)

# Seconds a SQLite connection waits on a locked database
SQLITE_BUSY_TIMEOUT = 30


class Database:
    """Owns the async engine and session factory of one database.

    Each worker builds one instance from configuration and hands it to the
    queue and processors, which open short-lived sessions through
    :meth:`session`.
    """

    def __init__(self, url: str, echo: bool = False, **engine_options: Any):
        self.url = url
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self._echo = echo
        self._engine_options = engine_options

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "Database":
        """Build a database from the ``database`` settings section."""
        options: Dict[str, Any] = {}
        if make_url(config.url).get_backend_name() != "sqlite":
            options.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_recycle=3600,
            )
        return cls(config.url, echo=config.echo, **options)

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the async engine."""
        if self._engine is None:
            options = dict(self._engine_options)
            if make_url(self.url).get_backend_name() == "sqlite":
                options.setdefault("connect_args", {"timeout": SQLITE_BUSY_TIMEOUT})
            self._engine = create_async_engine(
                self.url,
                echo=self._echo,
                pool_pre_ping=True,
                **options,
            )
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the async session factory."""
        if self._sessionmaker is None:
            self._sessionmaker = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._sessionmaker

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scope that commits on success and rolls back on error.

        Example:
            async with database.session() as session:
                clip = await ClipRepository(session).get(clip_id)
        """
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create every table that does not exist yet."""
        from ..persistence.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database tables initialized")

    async def dispose(self) -> None:
        """Close pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("Database connections closed")
