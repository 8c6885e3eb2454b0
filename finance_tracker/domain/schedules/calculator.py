"""Recurrence arithmetic for subscription billing dates."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Union

from finance_tracker.domain.common.exceptions import ValidationError
from finance_tracker.domain.common.money import AmountLike, parse_amount


class Frequency(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    BI_WEEKLY = "BiWeekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUALLY = "SemiAnnually"
    ANNUALLY = "Annually"


FrequencyLike = Union[Frequency, str]

_DAY_STEPS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.BI_WEEKLY: 14,
}

_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.SEMI_ANNUALLY: 6,
    Frequency.ANNUALLY: 12,
}


def coerce_frequency(value: FrequencyLike) -> Frequency:
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(value)
    except ValueError:
        raise ValidationError("Frequency is invalid.") from None


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole calendar months, clamping to the target month's last day."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def calculate_next(from_utc: datetime, frequency: FrequencyLike) -> datetime:
    freq = coerce_frequency(frequency)
    if freq in _DAY_STEPS:
        return from_utc + timedelta(days=_DAY_STEPS[freq])
    return add_months(from_utc, _MONTH_STEPS[freq])


def occurrences_between(start_utc: datetime, end_utc: datetime, frequency: FrequencyLike) -> list[datetime]:
    """Due timestamps from ``start_utc`` up to and including ``end_utc``.

    Successive dates are derived from the previous one, the same way the
    billing sweep advances a subscription one cycle at a time.
    """
    freq = coerce_frequency(frequency)
    dates: list[datetime] = []
    current = start_utc
    while current <= end_utc:
        dates.append(current)
        current = calculate_next(current, freq)
    return dates


def validate(
    amount: AmountLike,
    frequency: FrequencyLike,
    currency: str | None = None,
) -> tuple[Decimal, Frequency]:
    """Check a subscription amount and frequency; returns the normalised pair."""
    parsed = parse_amount(amount, currency=currency)
    if parsed <= 0:
        raise ValidationError("Amount must be greater than 0.")
    return parsed, coerce_frequency(frequency)
