"""Error taxonomy shared by the balance and subscription domains.

Every error carries a stable ``code`` so callers can map failures to their own
responses without matching on message text.
"""

from __future__ import annotations


class FinanceTrackerError(Exception):
    """Base class for all engine errors."""

    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(FinanceTrackerError):
    """Raised for malformed input: bad amounts, unknown frequencies, missing ids."""

    code = "validation_error"


class InsufficientFundsError(FinanceTrackerError):
    """Raised when a debit exceeds the available balance."""

    code = "insufficient_funds"


class NotFoundError(FinanceTrackerError):
    """Raised when a referenced record does not exist."""

    code = "not_found"


class StoreUnavailableError(FinanceTrackerError):
    """Raised when the backing store fails with an infrastructure fault."""

    code = "store_unavailable"

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class StoreTimeoutError(StoreUnavailableError):
    """Raised when a store call exceeds its deadline."""

    code = "store_timeout"


class RecorderFailureError(FinanceTrackerError):
    """Raised when the transaction recorder reports failure or faults."""

    code = "recorder_failure"
