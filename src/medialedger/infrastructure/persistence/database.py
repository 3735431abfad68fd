"""Database session management."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from medialedger.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """Catalog connection, session factory and single-writer discipline."""

    def __init__(self, settings: Settings) -> None:
        """Initialize database with settings."""
        self.settings = settings
        url = settings.database.url

        engine_kwargs: dict[str, Any] = {
            "echo": settings.database.echo,
            "pool_pre_ping": settings.database.pool_pre_ping,
        }

        if "sqlite" in url:
            engine_kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": 30,  # Wait up to 30s for lock
            }
            # Hey future me - an in-memory DB exists per CONNECTION! StaticPool makes every
            # session share the one connection, otherwise each session sees an empty catalog.
            if ":memory:" in url:
                engine_kwargs["poolclass"] = StaticPool

        self._engine = create_async_engine(url, **engine_kwargs)

        if "sqlite" in url:
            self._enable_sqlite_foreign_keys()

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        # One writer at a time: importer and reconciler mutate through writer() only.
        self._write_lock = asyncio.Lock()

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Raw session factory (read paths and workers)."""
        return self._session_factory

    def _enable_sqlite_foreign_keys(self) -> None:
        """Enable foreign key constraints for SQLite.

        SQLite has foreign keys disabled by default. This method enables them
        for all connections.
        """

        @event.listens_for(self._engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn: Any, _connection_record: Any) -> None:
            """Set SQLite pragmas on connection."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            logger.debug("Enabled foreign keys for SQLite connection")

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope for database operations."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                # Rollback on any exception to keep the transaction atomic; always re-raised.
                await session.rollback()
                raise
            finally:
                await session.close()

    # Hey future me - THIS is the catalog-write mutual exclusion! The reconciler takes it once
    # per track cascade, the importer once per import batch. Never hold it across file I/O
    # or bookmark resolution - only around the actual SQL writes.
    @asynccontextmanager
    async def writer(self) -> AsyncGenerator[AsyncSession, None]:
        """Serialized transactional scope for catalog mutations."""
        async with self._write_lock:
            async with self.session_scope() as session:
                yield session

    @property
    def write_in_progress(self) -> bool:
        """True while some coroutine holds the writer lock."""
        return self._write_lock.locked()

    async def close(self) -> None:
        """Close database connection."""
        await self._engine.dispose()

    async def create_tables(self) -> None:
        """Create all tables (tests and first start without Alembic)."""
        from medialedger.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables (for testing only)."""
        from medialedger.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
