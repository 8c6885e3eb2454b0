"""Subscription domain specific exceptions."""

from finance_tracker.domain.common.exceptions import NotFoundError, ValidationError


class SubscriptionNotFoundError(NotFoundError):
    """Raised when the requested subscription cannot be found."""


class SubscriptionValidationError(ValidationError):
    """Raised when a subscription signup carries invalid data."""
