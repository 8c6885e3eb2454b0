"""SQLAlchemy-backed repository implementations."""

from .balance_repository import SqlBalanceRepository
from .subscription_repository import SqlSubscriptionRepository
from .transaction_repository import SqlTransactionRepository

__all__ = [
    "SqlBalanceRepository",
    "SqlSubscriptionRepository",
    "SqlTransactionRepository",
]
