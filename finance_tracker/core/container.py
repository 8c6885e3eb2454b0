"""Simple dependency container for wiring core services."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from finance_tracker.core.config import Settings, get_settings
from finance_tracker.domain.balances import BalanceService
from finance_tracker.domain.subscriptions import SubscriptionService
from finance_tracker.domain.transactions import TransactionRecorder, TransactionService
from finance_tracker.infrastructure.database.session import get_engine, get_session_factory, session_scope


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession] | None = None

    def init_infrastructure(self) -> None:
        """Ensure infrastructure singletons (database engine, etc.) are initialised."""
        get_engine()
        if self.session_factory is None:
            self.session_factory = get_session_factory()

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        async with session_scope(self.session_factory, timeout=self.settings.store_timeout) as session:
            yield session

    def balance_service(self, session: AsyncSession) -> BalanceService:
        return BalanceService.with_session(
            session,
            timeout=self.settings.store_timeout,
            currency=self.settings.billing.default_currency,
        )

    def transaction_service(self, session: AsyncSession) -> TransactionService:
        return TransactionService.with_session(session, timeout=self.settings.store_timeout)

    def subscription_service(
        self,
        session: AsyncSession,
        recorder: TransactionRecorder | None = None,
    ) -> SubscriptionService:
        return SubscriptionService.with_session(
            session,
            recorder or self.transaction_service(session),
            timeout=self.settings.store_timeout,
            recorder_timeout=self.settings.recorder_timeout,
            batch_size=self.settings.billing.sweep_batch_size,
            default_currency=self.settings.billing.default_currency,
        )


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
