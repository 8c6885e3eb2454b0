"""Shared validation helpers for amounts, identifiers and currency codes.

Money is persisted as integer minor units so that the store can apply
credits, debits and checks with exact integer arithmetic. The number of
minor-unit digits follows the ISO 4217 exponent of the currency (two unless
listed in ``CURRENCY_MINOR_UNIT_DIGITS``).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from .exceptions import ValidationError

DEFAULT_MINOR_UNIT_DIGITS = 2
CURRENCY_MINOR_UNIT_DIGITS = {
    "BHD": 3,
    "CLP": 0,
    "IQD": 3,
    "ISK": 0,
    "JOD": 3,
    "JPY": 0,
    "KRW": 0,
    "KWD": 3,
    "LYD": 3,
    "OMR": 3,
    "TND": 3,
    "VND": 0,
}
# Largest single amount; keeps minor units well inside a signed 64-bit column.
MAX_AMOUNT = Decimal("999999999999")
MAX_USER_ID_LENGTH = 64

AmountLike = Union[Decimal, int, str]


def minor_unit_digits(currency: str | None = None) -> int:
    if not currency:
        return DEFAULT_MINOR_UNIT_DIGITS
    return CURRENCY_MINOR_UNIT_DIGITS.get(currency.upper(), DEFAULT_MINOR_UNIT_DIGITS)


def _quantum(digits: int) -> Decimal:
    return Decimal(1).scaleb(-digits)


def parse_amount(value: AmountLike, field: str = "amount", currency: str | None = None) -> Decimal:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{field} must be a decimal value, not {type(value).__name__}.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} is not a valid number.") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number.")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field} must not exceed {MAX_AMOUNT}.")

    digits = minor_unit_digits(currency)
    try:
        quantized = amount.quantize(_quantum(digits))
    except InvalidOperation:
        raise ValidationError(f"{field} is not a valid number.") from None
    if amount != quantized:
        raise ValidationError(f"{field} supports at most {digits} decimal places.")
    return quantized


def require_positive(amount: AmountLike, field: str = "amount", currency: str | None = None) -> Decimal:
    parsed = parse_amount(amount, field, currency)
    if parsed <= 0:
        raise ValidationError(f"{field.capitalize()} must be greater than 0.")
    return parsed


def to_minor_units(amount: Decimal, currency: str | None = None) -> int:
    return int(amount.scaleb(minor_unit_digits(currency)).to_integral_value())


def from_minor_units(value: int, currency: str | None = None) -> Decimal:
    digits = minor_unit_digits(currency)
    return Decimal(value).scaleb(-digits).quantize(_quantum(digits))


def require_user_id(value: str | None, field: str = "user_id") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required.")
    cleaned = value.strip()
    if len(cleaned) > MAX_USER_ID_LENGTH:
        raise ValidationError(f"{field} must be at most {MAX_USER_ID_LENGTH} characters.")
    return cleaned


def normalize_currency(value: str | None, default: str = "USD") -> str:
    if value is None or not str(value).strip():
        return default
    code = str(value).strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValidationError(f"Currency code is invalid: {value}")
    return code
