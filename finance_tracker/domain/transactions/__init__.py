"""Transaction domain exports"""

from .models import TransactionEvent
from .recorder import TransactionRecorder, billing_idempotency_key
from .service import TransactionService

__all__ = [
    "TransactionEvent",
    "TransactionRecorder",
    "TransactionService",
    "billing_idempotency_key",
]
