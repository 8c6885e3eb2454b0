"""Balance domain exports"""

from .exceptions import BalanceNotFoundError, InsufficientFundsError
from .models import BalanceRecord
from .service import BalanceService

__all__ = [
    "BalanceNotFoundError",
    "BalanceRecord",
    "BalanceService",
    "InsufficientFundsError",
]
