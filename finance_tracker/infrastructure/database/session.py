"""Async SQLAlchemy engine and session management.

One engine and session factory are cached per process. ``session_scope`` is
the unit of work used by the container, the sweeper and the CLI.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from finance_tracker.core.config import get_settings
from finance_tracker.infrastructure.database.base import Base
from finance_tracker.infrastructure.database.guard import guard_store_call

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _build_engine() -> AsyncEngine:
    settings = get_settings()
    database = settings.database
    options: dict[str, Any] = {"echo": database.echo or settings.debug, "pool_pre_ping": True}
    for key in ("pool_size", "max_overflow"):
        value = getattr(database, key)
        if value is not None:
            options[key] = value

    engine = create_async_engine(database.url, **options)
    if engine.dialect.name == "sqlite":
        configure_sqlite_transactions(engine)
    return engine


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = _build_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(bind=get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession] | None = None,
    *,
    timeout: float | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session that commits on success and rolls back on error.

    Commit and rollback run under the store deadline, so driver faults there
    surface as ``StoreTimeoutError`` / ``StoreUnavailableError``.
    """
    factory = factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await guard_store_call(session.commit(), operation="session.commit", timeout=timeout)
        except Exception:
            await guard_store_call(session.rollback(), operation="session.rollback", timeout=timeout)
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with session_scope() as session:
        yield session


async def init_db() -> None:
    """Create database tables in development mode (migrations preferred)."""
    from finance_tracker.db import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def configure_sqlite_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs behave under the sqlite drivers."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")
