"""Collaborator interface used by the subscription sweep to record billing events."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from finance_tracker.core.clock import ensure_utc


class TransactionRecorder(Protocol):
    """Records one completed billing event and reports whether it was stored.

    Implementations must tolerate repeated calls for the same logical event;
    ``idempotency_key`` identifies that event.
    """

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
        ...


def billing_idempotency_key(subscription_id: str, due_utc: datetime) -> str:
    return f"sub:{subscription_id}:{ensure_utc(due_utc).isoformat()}"
