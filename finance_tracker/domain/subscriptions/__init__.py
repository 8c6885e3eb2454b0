"""Subscription domain exports"""

from .exceptions import SubscriptionNotFoundError, SubscriptionValidationError
from .models import Subscription, SubscriptionCreateInput, SweepReport
from .service import SubscriptionService

__all__ = [
    "Subscription",
    "SubscriptionCreateInput",
    "SubscriptionNotFoundError",
    "SubscriptionService",
    "SubscriptionValidationError",
    "SweepReport",
]
