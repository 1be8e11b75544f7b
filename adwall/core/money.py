# adwall/core/money.py
"""Money is stored as integer cents and shown as two-decimal amounts."""

from decimal import Decimal, InvalidOperation
from typing import Any

from adwall.core.errors import ValidationFailed

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationFailed("Amount must be a number")
    if not amount.is_finite():
        raise ValidationFailed("Amount must be a number")
    return amount.quantize(CENT)


def to_cents(value: Any) -> int:
    return int(to_money(value).scaleb(2))


def from_cents(cents: Any) -> Decimal:
    return Decimal(int(cents or 0)).scaleb(-2)
