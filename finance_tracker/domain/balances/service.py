"""Balance domain service"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.core.clock import utcnow
from finance_tracker.domain.common.money import (
    AmountLike,
    from_minor_units,
    require_positive,
    require_user_id,
    to_minor_units,
)
from finance_tracker.infrastructure.database.repositories.balance_repository import SqlBalanceRepository

from .exceptions import BalanceNotFoundError, InsufficientFundsError
from .models import BalanceRecord
from .repository import BalanceRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BalanceService:
    repository: BalanceRepository
    currency: str = "USD"

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        *,
        timeout: float | None = None,
        currency: str = "USD",
    ) -> "BalanceService":
        return cls(SqlBalanceRepository(session, timeout=timeout), currency=currency)

    async def get_balance(self, user_id: str) -> BalanceRecord | None:
        user_id = require_user_id(user_id)
        row = await self.repository.get_by_user(user_id)
        return self._to_domain(row) if row else None

    async def require_balance(self, user_id: str) -> BalanceRecord:
        record = await self.get_balance(user_id)
        if record is None:
            raise BalanceNotFoundError(f"No balance record for user {user_id}")
        return record

    async def credit(self, user_id: str, amount: AmountLike) -> BalanceRecord:
        user_id = require_user_id(user_id)
        value = require_positive(amount, currency=self.currency)
        now = utcnow()

        await self.repository.ensure_record(user_id, self.currency, now)
        row = await self.repository.increment(user_id, to_minor_units(value, self.currency), now)
        if row is None:
            raise BalanceNotFoundError(f"Balance record for user {user_id} disappeared during credit")

        logger.info("credited %s to %s", value, user_id, extra={"user_id": user_id, "amount": value})
        return self._to_domain(row)

    async def debit(self, user_id: str, amount: AmountLike) -> BalanceRecord:
        """Subtract ``amount``; a rejected debit leaves no trace, not even a new zero record."""
        user_id = require_user_id(user_id)
        value = require_positive(amount, currency=self.currency)
        now = utcnow()

        async with self.repository.savepoint():
            await self.repository.ensure_record(user_id, self.currency, now)
            row = await self.repository.decrement_if_sufficient(user_id, to_minor_units(value, self.currency), now)
            if row is None:
                current = await self.repository.get_by_user(user_id)
                if current is None:
                    raise BalanceNotFoundError(f"Balance record for user {user_id} disappeared during debit")
                available = from_minor_units(current.balance_minor, current.currency)
                logger.warning(
                    "debit of %s rejected for %s, available %s",
                    value,
                    user_id,
                    available,
                    extra={"user_id": user_id, "amount": value, "error_code": InsufficientFundsError.code},
                )
                raise InsufficientFundsError(f"Insufficient balance: requested {value}, available {available}.")

        logger.info("debited %s from %s", value, user_id, extra={"user_id": user_id, "amount": value})
        return self._to_domain(row)

    async def delete_balance_record(self, user_id: str) -> bool:
        user_id = require_user_id(user_id)
        deleted = await self.repository.delete_by_user(user_id)
        if deleted:
            logger.info("deleted balance record for %s", user_id, extra={"user_id": user_id})
        return deleted

    @staticmethod
    def _to_domain(row: Any) -> BalanceRecord:
        return BalanceRecord(
            id=row.id,
            user_id=row.user_id,
            balance=from_minor_units(row.balance_minor, row.currency),
            currency=row.currency,
            last_updated=row.last_updated,
        )
