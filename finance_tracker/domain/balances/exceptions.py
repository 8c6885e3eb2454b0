"""Balance domain specific exceptions."""

from finance_tracker.domain.common.exceptions import InsufficientFundsError, NotFoundError


class BalanceNotFoundError(NotFoundError):
    """Raised when no balance record exists for the requested user."""


__all__ = ["BalanceNotFoundError", "InsufficientFundsError"]
