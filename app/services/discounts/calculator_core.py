from decimal import Decimal

from app.core.config import COMBO_DISCOUNT_PERCENT
from app.schemas.discounts.discount_schemas import (
    DiscountEntry,
    FixedAmountTerms,
    PercentageTerms,
    ComboTerms,
)
from app.schemas.receipts.receipt_schemas import ReceiptSnapshot
from app.utils.decimal_utils import ZERO, round2, percent_of


def combo_base(terms: ComboTerms, receipt: ReceiptSnapshot) -> Decimal:
    """
    Sum of min_quantity x unit_price over the required items.
    When an item sits on several lines the cheapest unit price is used.
    """
    base = ZERO
    for req in terms.items:
        prices = [
            line.unit_price
            for line in receipt.line_items
            if line.item_id == req.item_id
        ]
        if not prices:
            continue
        base += req.min_quantity * min(prices)
    return base


def value_at_application(
    discount: DiscountEntry,
    combo_percent: Decimal = COMBO_DISCOUNT_PERCENT,
) -> Decimal:
    terms = discount.terms
    if isinstance(terms, (FixedAmountTerms, PercentageTerms)):
        return round2(terms.value)
    if isinstance(terms, ComboTerms):
        return round2(combo_percent)
    raise TypeError(f"Unhandled discount terms: {terms!r}")


def calculate(
    discount: DiscountEntry,
    receipt: ReceiptSnapshot,
    combo_percent: Decimal = COMBO_DISCOUNT_PERCENT,
) -> Decimal:
    """Amount saved, in cents precision. Call only after an Eligible verdict."""
    terms = discount.terms
    subtotal = receipt.subtotal

    if isinstance(terms, FixedAmountTerms):
        saved = min(terms.value, subtotal)
    elif isinstance(terms, PercentageTerms):
        saved = percent_of(subtotal, terms.value)
    elif isinstance(terms, ComboTerms):
        saved = percent_of(combo_base(terms, receipt), combo_percent)
    else:
        raise TypeError(f"Unhandled discount terms: {terms!r}")

    # 0 <= saved <= subtotal, rounded once
    return min(round2(max(ZERO, saved)), round2(subtotal))
