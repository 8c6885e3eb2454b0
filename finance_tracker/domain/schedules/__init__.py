"""Billing schedule exports"""

from .calculator import (
    Frequency,
    add_months,
    calculate_next,
    coerce_frequency,
    occurrences_between,
    validate,
)

__all__ = [
    "Frequency",
    "add_months",
    "calculate_next",
    "coerce_frequency",
    "occurrences_between",
    "validate",
]
