"""SQLAlchemy implementation for balance records"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime

from sqlalchemy import Row, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from finance_tracker.db.models import BalanceRecord, generate_uuid
from finance_tracker.infrastructure.database.guard import guarded_savepoint, store_operation

_COLUMNS = (
    BalanceRecord.id,
    BalanceRecord.user_id,
    BalanceRecord.balance_minor,
    BalanceRecord.currency,
    BalanceRecord.last_updated,
)


class SqlBalanceRepository:
    """Column-level reads and atomic arithmetic updates; no ORM identities are cached."""

    def __init__(self, session: AsyncSession, timeout: float | None = None) -> None:
        self.session = session
        self.timeout = timeout

    @store_operation("balances.get_by_user")
    async def get_by_user(self, user_id: str) -> Row | None:
        stmt = select(*_COLUMNS).where(BalanceRecord.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.first()

    @store_operation("balances.ensure_record")
    async def ensure_record(self, user_id: str, currency: str, now: datetime) -> None:
        exists = await self.session.execute(select(BalanceRecord.id).where(BalanceRecord.user_id == user_id))
        if exists.first() is not None:
            return
        stmt = insert(BalanceRecord).values(
            id=generate_uuid(),
            user_id=user_id,
            balance_minor=0,
            currency=currency,
            last_updated=now,
        )
        try:
            async with self.session.begin_nested():
                await self.session.execute(stmt)
        except IntegrityError:
            # unique user_id: a concurrent creator inserted first
            pass

    @store_operation("balances.increment")
    async def increment(self, user_id: str, delta_minor: int, now: datetime) -> Row | None:
        stmt = (
            update(BalanceRecord)
            .where(BalanceRecord.user_id == user_id)
            .values(balance_minor=BalanceRecord.balance_minor + delta_minor, last_updated=now)
            .returning(*_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.first()

    @store_operation("balances.decrement_if_sufficient")
    async def decrement_if_sufficient(self, user_id: str, amount_minor: int, now: datetime) -> Row | None:
        stmt = (
            update(BalanceRecord)
            .where(
                BalanceRecord.user_id == user_id,
                BalanceRecord.balance_minor >= amount_minor,
            )
            .values(balance_minor=BalanceRecord.balance_minor - amount_minor, last_updated=now)
            .returning(*_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.first()

    @store_operation("balances.delete_by_user")
    async def delete_by_user(self, user_id: str) -> bool:
        stmt = (
            delete(BalanceRecord)
            .where(BalanceRecord.user_id == user_id)
            .returning(BalanceRecord.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    def savepoint(self) -> AbstractAsyncContextManager[AsyncSessionTransaction]:
        return guarded_savepoint(self.session, operation="balances.savepoint", timeout=self.timeout)
