"""Domain models for balance operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(slots=True)
class BalanceRecord:
    id: str
    user_id: str
    balance: Decimal
    currency: str
    last_updated: datetime
