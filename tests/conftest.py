"""Shared fixtures: a fresh in-memory database per test and a controllable recorder.

Every test gets its own SQLite engine (StaticPool keeps the single in-memory
connection alive across sessions). The recorder fake stands in for the
transaction collaborator and can be told to fail or raise per user.
"""

import asyncio
import os

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from finance_tracker.core.config import Settings  # noqa: E402
from finance_tracker.core.container import ApplicationContainer  # noqa: E402
from finance_tracker.db import models  # noqa: E402,F401
from finance_tracker.infrastructure.database.base import Base  # noqa: E402
from finance_tracker.infrastructure.database.session import configure_sqlite_transactions  # noqa: E402


class FakeRecorder:
    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.fail_for: set[str] = set()
        self.raise_for: set[str] = set()
        self.delay: float | None = None
        self.called = asyncio.Event()

    async def record_transaction(
        self,
        *,
        user_id,
        amount,
        currency,
        when_utc,
        description,
        subscription_id=None,
        idempotency_key=None,
    ) -> bool:
        self.calls.append(
            {
                "user_id": user_id,
                "amount": amount,
                "currency": currency,
                "when_utc": when_utc,
                "description": description,
                "subscription_id": subscription_id,
                "idempotency_key": idempotency_key,
            }
        )
        self.called.set()
        if self.delay:
            await asyncio.sleep(self.delay)
        if user_id in self.raise_for:
            raise ConnectionError("payment backend unreachable")
        return user_id not in self.fail_for


@pytest.fixture
async def test_engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool, echo=False)
    configure_sqlite_transactions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def recorder():
    return FakeRecorder()


@pytest.fixture
def container(test_session_factory):
    return ApplicationContainer(settings=Settings(), session_factory=test_session_factory)
