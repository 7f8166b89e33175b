"""Database initialization and session management."""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

# Table registration for create_all
from storyjournal.models.story import Story  # noqa: F401
from storyjournal.models.story_details import StoryDetails  # noqa: F401

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: Any = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection.

    SQLite ignores ``ON DELETE CASCADE`` and parent checks unless the pragma is
    set on each connection.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def init_db(database_url: str) -> None:
    """Initialize the database and create all tables."""
    global _engine, _session_factory

    _engine = create_async_engine(database_url, echo=False)
    enable_sqlite_foreign_keys(_engine)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    logger.info(f"Database ready ({_engine.dialect.name})")


async def close_db() -> None:
    """Dispose the engine."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session (dependency injection)."""
    if _session_factory is None:
        msg = "Database is not initialized, call init_db() first"
        raise RuntimeError(msg)

    async with _session_factory() as session:
        yield session

