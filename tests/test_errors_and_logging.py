import asyncio
import json
import logging

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.core.config import Settings
from finance_tracker.core.logging import JSONFormatter
from finance_tracker.domain.common import (
    InsufficientFundsError,
    StoreTimeoutError,
    StoreUnavailableError,
    ValidationError,
)
from finance_tracker.infrastructure.database.guard import guard_store_call, guarded_savepoint, store_operation
from finance_tracker.infrastructure.database.session import session_scope


def test_errors_expose_code_and_message():
    assert ValidationError("bad").to_dict() == {"code": "validation_error", "message": "bad"}
    assert InsufficientFundsError("no").code == "insufficient_funds"
    assert issubclass(StoreTimeoutError, StoreUnavailableError)
    assert StoreTimeoutError("slow").code == "store_timeout"


async def test_guard_maps_timeout_to_store_timeout():
    with pytest.raises(StoreTimeoutError) as info:
        await guard_store_call(asyncio.sleep(1), operation="balances.get", timeout=0.01)
    assert info.value.operation == "balances.get"


async def test_guard_maps_operational_error():
    async def boom():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with pytest.raises(StoreUnavailableError) as info:
        await guard_store_call(boom(), operation="subscriptions.list_due", timeout=None)
    assert info.value.code == "store_unavailable"


async def test_guard_lets_integrity_errors_through():
    async def conflict():
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(IntegrityError):
        await guard_store_call(conflict(), operation="balances.insert", timeout=1)


async def test_store_operation_uses_instance_timeout():
    class SlowRepository:
        timeout = 0.01

        @store_operation("slow.read")
        async def read(self):
            await asyncio.sleep(1)

    with pytest.raises(StoreTimeoutError):
        await SlowRepository().read()


async def test_session_scope_maps_commit_failure(test_session_factory, monkeypatch):
    async def locked(self):
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(AsyncSession, "commit", locked)

    with pytest.raises(StoreUnavailableError) as info:
        async with session_scope(test_session_factory, timeout=1) as session:
            await session.execute(text("SELECT 1"))
    assert info.value.operation == "session.commit"


async def test_guarded_savepoint_rolls_back_and_reraises(test_db):
    with pytest.raises(ValidationError):
        async with guarded_savepoint(test_db, operation="balances.savepoint", timeout=1) as nested:
            await test_db.execute(text("SELECT 1"))
            raise ValidationError("rejected")
    assert not nested.is_active
    assert (await test_db.execute(text("SELECT 1"))).scalar_one() == 1


def test_json_formatter_surfaces_extras():
    record = logging.LogRecord("finance_tracker.test", logging.WARNING, __file__, 1, "left %s due", ("sub-1",), None)
    record.subscription_id = "sub-1"
    record.error_code = "recorder_failure"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "left sub-1 due"
    assert payload["level"] == "WARNING"
    assert payload["subscription_id"] == "sub-1"
    assert payload["error_code"] == "recorder_failure"
    assert "user_id" not in payload


def test_settings_read_nested_environment(monkeypatch):
    monkeypatch.setenv("BILLING__SWEEP_BATCH_SIZE", "25")
    monkeypatch.setenv("DATABASE__OPERATION_TIMEOUT_SECONDS", "2.5")

    settings = Settings()

    assert settings.billing.sweep_batch_size == 25
    assert settings.store_timeout == 2.5
    assert settings.billing.default_currency == "USD"
