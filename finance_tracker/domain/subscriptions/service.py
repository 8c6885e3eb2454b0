"""Subscription domain service: signup, listing, cancellation and the billing sweep."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.core.clock import ensure_utc, utcnow
from finance_tracker.db.models import Subscription as SubscriptionModel
from finance_tracker.domain.common.exceptions import (
    RecorderFailureError,
    StoreUnavailableError,
    ValidationError,
)
from finance_tracker.domain.common.money import (
    from_minor_units,
    normalize_currency,
    require_user_id,
    to_minor_units,
)
from finance_tracker.domain.schedules import Frequency, calculate_next, validate
from finance_tracker.domain.transactions import (
    TransactionRecorder,
    TransactionService,
    billing_idempotency_key,
)
from finance_tracker.infrastructure.database.repositories.subscription_repository import SqlSubscriptionRepository

from .exceptions import SubscriptionNotFoundError, SubscriptionValidationError
from .models import Subscription, SubscriptionCreateInput, SweepReport
from .repository import SubscriptionRepository

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 150


class _ClaimLost(Exception):
    """Another sweep advanced the subscription, or it was canceled, after it was read."""


@dataclass(slots=True)
class SubscriptionService:
    repository: SubscriptionRepository
    recorder: TransactionRecorder
    default_currency: str = "USD"
    recorder_timeout: Optional[float] = None
    batch_size: Optional[int] = None

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        recorder: TransactionRecorder | None = None,
        *,
        timeout: float | None = None,
        recorder_timeout: float | None = None,
        batch_size: int | None = None,
        default_currency: str = "USD",
    ) -> "SubscriptionService":
        return cls(
            SqlSubscriptionRepository(session, timeout=timeout),
            recorder or TransactionService.with_session(session, timeout=timeout),
            default_currency=default_currency,
            recorder_timeout=recorder_timeout,
            batch_size=batch_size,
        )

    async def add_subscription(self, payload: SubscriptionCreateInput) -> Subscription:
        try:
            owner_id = require_user_id(payload.owner_id, "owner_id")
            currency = normalize_currency(payload.currency, self.default_currency)
            amount, frequency = validate(payload.amount, payload.frequency, currency)
        except ValidationError as exc:
            raise SubscriptionValidationError(exc.message) from None

        name = (payload.name or "").strip()
        if not name:
            raise SubscriptionValidationError("Name is required.")
        if len(name) > MAX_NAME_LENGTH:
            raise SubscriptionValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters.")

        next_payment = ensure_utc(payload.next_payment_utc) if payload.next_payment_utc else utcnow()

        model = await self.repository.create(
            user_id=owner_id,
            name=name,
            amount_minor=to_minor_units(amount, currency),
            currency=currency,
            frequency=frequency.value,
            next_payment_utc=next_payment,
            notes=payload.notes,
        )
        logger.info(
            "subscription %s created for %s",
            model.id,
            owner_id,
            extra={"user_id": owner_id, "subscription_id": model.id, "amount": amount},
        )
        return self._to_domain(model)

    async def get_subscription(self, subscription_id: str) -> Subscription | None:
        model = await self.repository.get(subscription_id)
        return self._to_domain(model) if model else None

    async def require_subscription(self, subscription_id: str) -> Subscription:
        subscription = await self.get_subscription(subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError(f"Subscription not found: {subscription_id}")
        return subscription

    async def list_subscriptions(self, owner_id: str, only_active: bool = True) -> list[Subscription]:
        try:
            owner_id = require_user_id(owner_id, "owner_id")
        except ValidationError as exc:
            raise SubscriptionValidationError(exc.message) from None
        models = await self.repository.list_for_user(owner_id, only_active)
        return [self._to_domain(model) for model in models]

    async def cancel_subscription(self, subscription_id: str) -> bool:
        changed = await self.repository.deactivate(subscription_id)
        if changed:
            logger.info("subscription %s canceled", subscription_id, extra={"subscription_id": subscription_id})
        return changed

    async def process_due_subscriptions(self, as_of_utc: datetime | None = None) -> int:
        report = await self.run_sweep(as_of_utc)
        return report.processed_count

    async def run_sweep(self, as_of_utc: datetime | None = None) -> SweepReport:
        """Bill every subscription due at ``as_of_utc`` once.

        Due rows are read in ``(next_payment_utc, id)`` pages of ``batch_size``
        so rows that keep failing never hide the ones behind them. A row
        advanced earlier in this sweep and still due is not billed again.
        """
        as_of = ensure_utc(as_of_utc) if as_of_utc else utcnow()
        report = SweepReport(as_of_utc=as_of)
        visited: set[str] = set()
        cursor: tuple[datetime, str] | None = None

        while True:
            page = [
                self._to_domain(model)
                for model in await self.repository.list_due(as_of, self.batch_size, after=cursor)
            ]
            for subscription in page:
                if subscription.id in visited:
                    continue
                visited.add(subscription.id)
                await self._sweep_one(subscription, report)
            if self.batch_size is None or len(page) < self.batch_size:
                break
            cursor = (page[-1].next_payment_utc, page[-1].id)

        logger.info(
            "sweep as of %s: %d processed, %d skipped, %d failed",
            as_of.isoformat(),
            len(report.processed),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def _sweep_one(self, subscription: Subscription, report: SweepReport) -> None:
        try:
            async with self.repository.savepoint():
                await self._bill(subscription)
        except _ClaimLost:
            report.skipped.append(subscription.id)
            logger.info(
                "subscription %s already advanced by another sweep",
                subscription.id,
                extra={"subscription_id": subscription.id, "due_utc": subscription.next_payment_utc},
            )
        except (RecorderFailureError, StoreUnavailableError) as exc:
            self._mark_failed(report, subscription, exc.message, exc.code)
        except SQLAlchemyError as exc:
            self._mark_failed(report, subscription, f"{type(exc).__name__}: {exc}", StoreUnavailableError.code)
        else:
            report.processed.append(subscription.id)

    @staticmethod
    def _mark_failed(report: SweepReport, subscription: Subscription, message: str, code: str) -> None:
        report.failed.append(subscription.id)
        logger.warning(
            "subscription %s left due: %s",
            subscription.id,
            message,
            extra={
                "subscription_id": subscription.id,
                "user_id": subscription.user_id,
                "due_utc": subscription.next_payment_utc,
                "error_code": code,
            },
        )

    async def _bill(self, subscription: Subscription) -> None:
        """Advance one cycle and record the charge; raising rolls both back."""
        due = subscription.next_payment_utc
        claimed = await self.repository.advance_schedule(
            subscription.id,
            expected_next_payment_utc=due,
            next_payment_utc=calculate_next(due, subscription.frequency),
        )
        if not claimed:
            raise _ClaimLost(subscription.id)

        call = self.recorder.record_transaction(
            user_id=subscription.user_id,
            amount=subscription.amount,
            currency=subscription.currency,
            when_utc=due,
            description=f"Recurring payment for {subscription.name}",
            subscription_id=subscription.id,
            idempotency_key=billing_idempotency_key(subscription.id, due),
        )
        try:
            if self.recorder_timeout is None:
                recorded = await call
            else:
                recorded = await asyncio.wait_for(call, self.recorder_timeout)
        except asyncio.TimeoutError:
            raise RecorderFailureError(f"Recorder timed out after {self.recorder_timeout}s") from None
        except (RecorderFailureError, StoreUnavailableError):
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise RecorderFailureError(f"Recorder raised {type(exc).__name__}: {exc}") from exc
        if not recorded:
            raise RecorderFailureError("Recorder reported failure")

    @staticmethod
    def _to_domain(model: SubscriptionModel) -> Subscription:
        return Subscription(
            id=model.id,
            user_id=model.user_id,
            name=model.name,
            amount=from_minor_units(model.amount_minor, model.currency),
            currency=model.currency,
            frequency=Frequency(model.frequency),
            next_payment_utc=model.next_payment_utc,
            is_active=model.is_active,
            notes=model.notes,
            created_at=model.created_at,
        )
