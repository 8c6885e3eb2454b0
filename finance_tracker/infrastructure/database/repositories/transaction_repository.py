"""SQLAlchemy implementation for the transaction log"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.db.models import Transaction
from finance_tracker.infrastructure.database.guard import store_operation


class SqlTransactionRepository:
    def __init__(self, session: AsyncSession, timeout: float | None = None) -> None:
        self.session = session
        self.timeout = timeout

    @store_operation("transactions.add")
    async def add(
        self,
        *,
        user_id: str,
        amount_minor: int,
        currency: str,
        when_utc: datetime,
        description: str,
        subscription_id: str | None,
        idempotency_key: str | None,
    ) -> Transaction | None:
        """Append a transaction; returns None when ``idempotency_key`` was already recorded."""
        if idempotency_key is not None and await self.get_by_idempotency_key(idempotency_key) is not None:
            return None
        tx = Transaction(
            user_id=user_id,
            subscription_id=subscription_id,
            amount_minor=amount_minor,
            currency=currency,
            when_utc=when_utc,
            description=description,
            idempotency_key=idempotency_key,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(tx)
                await self.session.flush()
        except IntegrityError:
            if idempotency_key is None:
                raise
            return None
        await self.session.refresh(tx)
        return tx

    async def get_by_idempotency_key(self, idempotency_key: str) -> Transaction | None:
        stmt = select(Transaction).where(Transaction.idempotency_key == idempotency_key)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    @store_operation("transactions.list_for_user")
    async def list_for_user(self, user_id: str, limit: int, offset: int) -> Sequence[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(desc(Transaction.when_utc), desc(Transaction.created_at))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
