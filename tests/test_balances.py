from decimal import Decimal

import pytest
from sqlalchemy import func, select

from finance_tracker.core.clock import utcnow
from finance_tracker.db.models import BalanceRecord as BalanceModel
from finance_tracker.domain.balances import (
    BalanceNotFoundError,
    BalanceService,
    InsufficientFundsError,
)
from finance_tracker.domain.common import ValidationError
from finance_tracker.domain.common.money import MAX_AMOUNT
from finance_tracker.infrastructure.database.repositories import SqlBalanceRepository


@pytest.fixture
def service(test_db):
    return BalanceService.with_session(test_db, timeout=5)


async def _row_count(session, user_id):
    result = await session.execute(select(func.count()).select_from(BalanceModel).where(BalanceModel.user_id == user_id))
    return result.scalar_one()


async def test_get_balance_absent_has_no_side_effect(service, test_db):
    assert await service.get_balance("alice") is None
    assert await _row_count(test_db, "alice") == 0


async def test_credit_creates_record_for_new_user(service, test_db):
    record = await service.credit("alice", Decimal("100"))

    assert record.user_id == "alice"
    assert record.balance == Decimal("100.00")
    assert record.currency == "USD"
    assert record.last_updated is not None
    assert await _row_count(test_db, "alice") == 1


async def test_credit_debit_scenario(service):
    assert (await service.credit("alice", 100)).balance == Decimal("100.00")
    assert (await service.debit("alice", 30)).balance == Decimal("70.00")

    with pytest.raises(InsufficientFundsError) as info:
        await service.debit("alice", 1000)
    assert info.value.code == "insufficient_funds"

    assert (await service.get_balance("alice")).balance == Decimal("70.00")


async def test_debit_to_exactly_zero(service):
    await service.credit("bob", "15.99")
    record = await service.debit("bob", "15.99")
    assert record.balance == Decimal("0.00")


async def test_rejected_debit_on_new_user_leaves_no_record(service, test_db):
    with pytest.raises(InsufficientFundsError):
        await service.debit("carol", "0.01")
    assert await service.get_balance("carol") is None
    assert await _row_count(test_db, "carol") == 0


async def test_rejected_debit_keeps_existing_balance(service):
    await service.credit("carol", "5.00")
    with pytest.raises(InsufficientFundsError):
        await service.debit("carol", "5.01")
    assert (await service.get_balance("carol")).balance == Decimal("5.00")


async def test_mutations_update_last_updated(service):
    first = await service.credit("dave", 10)
    second = await service.credit("dave", 5)
    assert second.last_updated >= first.last_updated
    assert second.balance == Decimal("15.00")
    assert second.id == first.id


@pytest.mark.parametrize("amount", [0, -5, "0.00"])
async def test_non_positive_amounts_are_rejected(service, amount):
    with pytest.raises(ValidationError):
        await service.credit("erin", amount)
    with pytest.raises(ValidationError):
        await service.debit("erin", amount)
    assert await service.get_balance("erin") is None


async def test_fractional_cent_amounts_are_rejected(service):
    with pytest.raises(ValidationError):
        await service.credit("erin", "1.005")


@pytest.mark.parametrize("amount", ["1e30", "100000000000000000000"])
async def test_oversized_amounts_are_validation_errors(service, test_db, amount):
    with pytest.raises(ValidationError):
        await service.credit("ivy", amount)
    with pytest.raises(ValidationError):
        await service.debit("ivy", amount)
    assert await _row_count(test_db, "ivy") == 0


async def test_largest_amount_round_trips(service):
    record = await service.credit("ivy", MAX_AMOUNT)
    assert record.balance == MAX_AMOUNT
    assert (await service.debit("ivy", MAX_AMOUNT)).balance == Decimal("0")


async def test_three_digit_currency_ledger(test_db):
    service = BalanceService.with_session(test_db, currency="KWD")

    record = await service.credit("jay", "1.234")

    assert record.balance == Decimal("1.234")
    assert record.currency == "KWD"
    assert (await service.debit("jay", "0.004")).balance == Decimal("1.230")


async def test_missing_user_id_is_rejected(service):
    with pytest.raises(ValidationError):
        await service.credit("  ", 10)


async def test_delete_balance_record(service):
    await service.credit("frank", 10)

    assert await service.delete_balance_record("frank") is True
    assert await service.delete_balance_record("frank") is False
    assert await service.get_balance("frank") is None


async def test_require_balance_raises_not_found(service):
    with pytest.raises(BalanceNotFoundError) as info:
        await service.require_balance("nobody")
    assert info.value.code == "not_found"


async def test_ensure_record_is_idempotent(test_db):
    repository = SqlBalanceRepository(test_db)

    now = utcnow()
    await repository.ensure_record("gina", "USD", now)
    await repository.ensure_record("gina", "USD", now)

    assert await _row_count(test_db, "gina") == 1


async def test_conditional_decrement_never_goes_negative(test_db):
    repository = SqlBalanceRepository(test_db)

    now = utcnow()
    await repository.ensure_record("hank", "USD", now)
    await repository.increment("hank", 500, now)

    assert await repository.decrement_if_sufficient("hank", 501, now) is None
    row = await repository.decrement_if_sufficient("hank", 500, now)
    assert row.balance_minor == 0
