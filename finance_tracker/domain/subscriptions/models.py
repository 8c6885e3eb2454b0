"""Domain models for recurring subscriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from finance_tracker.domain.schedules import Frequency


@dataclass(slots=True)
class Subscription:
    id: str
    user_id: str
    name: str
    amount: Decimal
    currency: str
    frequency: Frequency
    next_payment_utc: datetime
    is_active: bool = True
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class SubscriptionCreateInput:
    owner_id: str
    name: str
    amount: Decimal | int | str
    frequency: Frequency | str
    currency: Optional[str] = None
    next_payment_utc: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(slots=True)
class SweepReport:
    """Outcome of one pass over due subscriptions."""

    as_of_utc: datetime
    processed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return len(self.processed)

    @property
    def due_count(self) -> int:
        return len(self.processed) + len(self.skipped) + len(self.failed)
