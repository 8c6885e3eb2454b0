"""Repository protocol for balance records."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Protocol


class BalanceRepository(Protocol):
    """Rows returned expose ``id, user_id, balance_minor, currency, last_updated``."""

    async def get_by_user(self, user_id: str) -> Any | None:
        ...

    async def ensure_record(self, user_id: str, currency: str, now: datetime) -> None:
        ...

    async def increment(self, user_id: str, delta_minor: int, now: datetime) -> Any | None:
        ...

    async def decrement_if_sufficient(self, user_id: str, amount_minor: int, now: datetime) -> Any | None:
        ...

    async def delete_by_user(self, user_id: str) -> bool:
        ...

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        ...
