"""Periodic runner for the due-subscription sweep."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from finance_tracker.core.container import ApplicationContainer
from finance_tracker.domain.common.exceptions import FinanceTrackerError
from finance_tracker.domain.subscriptions import SweepReport
from finance_tracker.domain.transactions import TransactionRecorder

logger = logging.getLogger(__name__)


class BillingSweeper:
    """Runs one sweep per interval, each inside its own committed session.

    Overlapping sweeps, from this loop or another process, are safe: each
    subscription advance is conditioned on the due date that sweep read.
    """

    def __init__(
        self,
        container: ApplicationContainer,
        *,
        interval: float | None = None,
        recorder: TransactionRecorder | None = None,
    ) -> None:
        self.container = container
        self.interval = interval if interval is not None else container.settings.billing.sweep_interval_seconds
        self.recorder = recorder
        self._stopped = asyncio.Event()

    async def run_once(self, as_of_utc: datetime | None = None) -> SweepReport:
        async with self.container.session_scope() as session:
            service = self.container.subscription_service(session, self.recorder)
            return await service.run_sweep(as_of_utc)

    async def run_forever(self) -> None:
        self._stopped.clear()
        logger.info("billing sweeper started, interval %ss", self.interval)
        try:
            while not self._stopped.is_set():
                try:
                    await self.run_once()
                except FinanceTrackerError as exc:
                    logger.error("sweep aborted: %s", exc.message, extra={"error_code": exc.code})
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    continue
        except asyncio.CancelledError:
            logger.debug("billing sweeper cancelled")
            raise
        finally:
            logger.info("billing sweeper stopped")

    def stop(self) -> None:
        self._stopped.set()
