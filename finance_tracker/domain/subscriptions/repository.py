"""Repository protocol for subscriptions."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Protocol, Sequence

from finance_tracker.db.models import Subscription as SubscriptionModel


class SubscriptionRepository(Protocol):
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
    ) -> SubscriptionModel:
        ...

    async def get(self, subscription_id: str) -> SubscriptionModel | None:
        ...

    async def list_for_user(self, user_id: str, only_active: bool) -> Sequence[SubscriptionModel]:
        ...

    async def list_due(
        self,
        as_of_utc: datetime,
        limit: int | None,
        after: tuple[datetime, str] | None = None,
    ) -> Sequence[SubscriptionModel]:
        ...

    async def deactivate(self, subscription_id: str) -> bool:
        ...

    async def advance_schedule(
        self,
        subscription_id: str,
        *,
        expected_next_payment_utc: datetime,
        next_payment_utc: datetime,
    ) -> bool:
        ...

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        ...
