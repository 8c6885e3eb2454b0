"""Transaction domain service.

Also the bundled :class:`TransactionRecorder` implementation: when it shares
the sweep's session, recording a charge and advancing the schedule commit
together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.core.clock import ensure_utc
from finance_tracker.db.models import Transaction as TransactionModel
from finance_tracker.domain.common.money import (
    from_minor_units,
    normalize_currency,
    require_positive,
    require_user_id,
    to_minor_units,
)
from finance_tracker.infrastructure.database.repositories.transaction_repository import SqlTransactionRepository

from .models import TransactionEvent

logger = logging.getLogger(__name__)


class TransactionRepository(Protocol):
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
    ) -> TransactionModel | None:
        ...

    async def list_for_user(self, user_id: str, limit: int, offset: int) -> Sequence[TransactionModel]:
        ...


@dataclass(slots=True)
class TransactionService:
    repository: TransactionRepository

    @classmethod
    def with_session(cls, session: AsyncSession, *, timeout: float | None = None) -> "TransactionService":
        return cls(SqlTransactionRepository(session, timeout=timeout))

    async def record_transaction(
        self,
        *,
        user_id: str,
        amount: Decimal,
        currency: str,
        when_utc: datetime,
        description: str,
        subscription_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> bool:
        currency = normalize_currency(currency)
        row = await self.repository.add(
            user_id=require_user_id(user_id),
            amount_minor=to_minor_units(require_positive(amount, currency=currency), currency),
            currency=currency,
            when_utc=ensure_utc(when_utc),
            description=description,
            subscription_id=subscription_id,
            idempotency_key=idempotency_key,
        )
        if row is None:
            logger.info(
                "transaction %s already recorded",
                idempotency_key,
                extra={"user_id": user_id, "subscription_id": subscription_id},
            )
        return True

    async def list_transactions(self, user_id: str, limit: int = 20, offset: int = 0) -> list[TransactionEvent]:
        rows = await self.repository.list_for_user(require_user_id(user_id), limit, offset)
        return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_domain(model: TransactionModel) -> TransactionEvent:
        return TransactionEvent(
            id=model.id,
            user_id=model.user_id,
            amount=from_minor_units(model.amount_minor, model.currency),
            currency=model.currency,
            when_utc=model.when_utc,
            description=model.description,
            subscription_id=model.subscription_id,
            idempotency_key=model.idempotency_key,
            created_at=model.created_at,
        )
