"""Domain model for recorded transactions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(slots=True)
class TransactionEvent:
    id: str
    user_id: str
    amount: Decimal
    currency: str
    when_utc: datetime
    description: str
    subscription_id: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: Optional[datetime] = None
