"""SQLAlchemy implementation for SubscriptionRepository"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Sequence

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from finance_tracker.db.models import Subscription
from finance_tracker.infrastructure.database.guard import guarded_savepoint, store_operation


class SqlSubscriptionRepository:
    def __init__(self, session: AsyncSession, timeout: float | None = None) -> None:
        self.session = session
        self.timeout = timeout

    @store_operation("subscriptions.create")
    async def create(
        self,
        *,
        user_id: str,
        name: str,
        amount_minor: int,
        currency: str,
        frequency: str,
        next_payment_utc: datetime,
        notes: str | None,
    ) -> Subscription:
        subscription = Subscription(
            user_id=user_id,
            name=name,
            amount_minor=amount_minor,
            currency=currency,
            frequency=frequency,
            next_payment_utc=next_payment_utc,
            is_active=True,
            notes=notes,
        )
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    @store_operation("subscriptions.get")
    async def get(self, subscription_id: str) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(Subscription.id == subscription_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    @store_operation("subscriptions.list_for_user")
    async def list_for_user(self, user_id: str, only_active: bool) -> Sequence[Subscription]:
        stmt = select(Subscription).where(Subscription.user_id == user_id)
        if only_active:
            stmt = stmt.where(Subscription.is_active.is_(True))
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return result.scalars().all()

    @store_operation("subscriptions.list_due")
    async def list_due(
        self,
        as_of_utc: datetime,
        limit: int | None,
        after: tuple[datetime, str] | None = None,
    ) -> Sequence[Subscription]:
        """Due rows ordered by ``(next_payment_utc, id)``, strictly after the ``after`` key when given."""
        stmt = select(Subscription).where(
            Subscription.is_active.is_(True),
            Subscription.next_payment_utc <= as_of_utc,
        )
        if after is not None:
            last_due, last_id = after
            stmt = stmt.where(
                or_(
                    Subscription.next_payment_utc > last_due,
                    and_(Subscription.next_payment_utc == last_due, Subscription.id > last_id),
                )
            )
        stmt = stmt.order_by(Subscription.next_payment_utc, Subscription.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return result.scalars().all()

    @store_operation("subscriptions.deactivate")
    async def deactivate(self, subscription_id: str) -> bool:
        stmt = (
            update(Subscription)
            .where(Subscription.id == subscription_id, Subscription.is_active.is_(True))
            .values(is_active=False)
            .returning(Subscription.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    @store_operation("subscriptions.advance_schedule")
    async def advance_schedule(
        self,
        subscription_id: str,
        *,
        expected_next_payment_utc: datetime,
        next_payment_utc: datetime,
    ) -> bool:
        """Compare-and-set on ``next_payment_utc``; False when another writer got there first."""
        stmt = (
            update(Subscription)
            .where(
                Subscription.id == subscription_id,
                Subscription.is_active.is_(True),
                Subscription.next_payment_utc == expected_next_payment_utc,
            )
            .values(next_payment_utc=next_payment_utc)
            .returning(Subscription.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    def savepoint(self) -> AbstractAsyncContextManager[AsyncSessionTransaction]:
        return guarded_savepoint(self.session, operation="subscriptions.savepoint", timeout=self.timeout)
