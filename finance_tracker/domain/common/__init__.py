"""Shared domain primitives"""

from .exceptions import (
    FinanceTrackerError,
    InsufficientFundsError,
    NotFoundError,
    RecorderFailureError,
    StoreTimeoutError,
    StoreUnavailableError,
    ValidationError,
)

__all__ = [
    "FinanceTrackerError",
    "InsufficientFundsError",
    "NotFoundError",
    "RecorderFailureError",
    "StoreTimeoutError",
    "StoreUnavailableError",
    "ValidationError",
]
