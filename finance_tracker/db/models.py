"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Column, Index, String, Text
from sqlalchemy.sql import func

from finance_tracker.infrastructure.database.base import Base, UTCDateTime


def generate_uuid() -> str:
    return str(uuid.uuid4())


class BalanceRecord(Base):
    __tablename__ = "balances"
    __table_args__ = (
        CheckConstraint("balance_minor >= 0", name="ck_balances_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), unique=True, nullable=False, index=True)
    balance_minor = Column(BigInteger, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    last_updated = Column(UTCDateTime(), nullable=False)
    created_at = Column(UTCDateTime(), server_default=func.now())


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint("amount_minor > 0", name="ck_subscriptions_positive_amount"),
        Index("ix_subscriptions_user_id_is_active", "user_id", "is_active"),
        Index("ix_subscriptions_is_active_next_payment_utc", "is_active", "next_payment_utc"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    amount_minor = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    frequency = Column(String(20), nullable=False)
    next_payment_utc = Column(UTCDateTime(), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text)
    created_at = Column(UTCDateTime(), server_default=func.now())
    updated_at = Column(UTCDateTime(), onupdate=func.now())


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    subscription_id = Column(String(36), nullable=True, index=True)
    amount_minor = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    when_utc = Column(UTCDateTime(), nullable=False)
    description = Column(String(255), nullable=False, default="")
    idempotency_key = Column(String(128), unique=True, nullable=True)
    created_at = Column(UTCDateTime(), server_default=func.now())
