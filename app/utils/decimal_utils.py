# app/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Exact conversion. Floats go through str() so 0.1 stays 0.1."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value) -> Decimal:
    """Round half up to cents. Only for final stored/displayed amounts."""
    return to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_money(value) -> Decimal:
    return round2(value)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    # unrounded; callers round once at the end of the chain
    return to_decimal(amount) * to_decimal(percent) / HUNDRED


def compute_total(subtotal: Decimal, amounts_saved: Iterable[Decimal]) -> Decimal:
    subtotal = to_decimal(subtotal)
    saved = sum((to_decimal(a) for a in amounts_saved), ZERO)
    # business decision: a receipt never goes below zero, however many discounts stack
    return round2(max(ZERO, subtotal - saved))
