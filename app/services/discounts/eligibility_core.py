"""
Discount eligibility rules.

Everything here is a pure function of (discount, receipt, now): no session,
no clock, no I/O. Checks run cheapest first and the first failure wins.
"""

from collections import Counter
from datetime import datetime, timezone, tzinfo
from typing import Iterable, Optional

from app.models.enums.eligibility_reason import IneligibleReason, DiscountStatus
from app.schemas.discounts.discount_schemas import (
    DiscountEntry,
    EligibilityVerdict,
    ComboTerms,
    MinAmountCondition,
    DayOfWeekCondition,
)
from app.schemas.receipts.receipt_schemas import ReceiptSnapshot
from app.utils.datetime_utils import ensure_utc, local_weekday


REASON_MESSAGES = {
    IneligibleReason.unknown_code: "Discount code not found",
    IneligibleReason.inactive: "Discount is not active",
    IneligibleReason.not_started: "Discount has not started yet",
    IneligibleReason.expired: "Discount has expired",
    IneligibleReason.usage_limit_reached: "Discount usage limit reached",
    IneligibleReason.conditions_not_met: "Receipt does not meet the discount conditions",
    IneligibleReason.combo_items_missing: "Receipt is missing the items required by this combo",
}


def match_code(catalog: Iterable[DiscountEntry], code: str) -> Optional[DiscountEntry]:
    wanted = code.strip().upper()
    for entry in catalog:
        if entry.code.upper() == wanted:
            return entry
    return None


def item_quantities(receipt: ReceiptSnapshot) -> Counter:
    quantities = Counter()
    for line in receipt.line_items:
        quantities[line.item_id] += line.quantity
    return quantities


def conditions_hold(
    discount: DiscountEntry,
    receipt: ReceiptSnapshot,
    now: datetime,
    tz: tzinfo,
) -> bool:
    for condition in discount.conditions:
        if isinstance(condition, MinAmountCondition):
            if condition.threshold > receipt.subtotal:
                return False
        elif isinstance(condition, DayOfWeekCondition):
            if local_weekday(now, tz) not in condition.allowed_days:
                return False
        else:
            raise TypeError(f"Unhandled discount condition: {condition!r}")
    return True


def combo_satisfied(terms: ComboTerms, receipt: ReceiptSnapshot) -> bool:
    quantities = item_quantities(receipt)
    return all(
        quantities.get(req.item_id, 0) >= req.min_quantity
        for req in terms.items
    )


def _window_and_usage(discount: DiscountEntry, now: datetime) -> Optional[IneligibleReason]:
    if not discount.active:
        return IneligibleReason.inactive
    if now < discount.valid_from:
        return IneligibleReason.not_started
    if now > discount.valid_until:
        return IneligibleReason.expired
    if discount.max_uses is not None and discount.uses_so_far >= discount.max_uses:
        return IneligibleReason.usage_limit_reached
    return None


def evaluate(
    discount: Optional[DiscountEntry],
    receipt: ReceiptSnapshot,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> EligibilityVerdict:
    """
    Decide whether ``discount`` may be applied to ``receipt`` at ``now``.

    ``discount`` is None when the submitted code matched nothing.
    ``tz`` is the restaurant's zone, used only for day-of-week conditions.
    """
    if discount is None:
        return EligibilityVerdict.reject(IneligibleReason.unknown_code)

    now = ensure_utc(now)

    reason = _window_and_usage(discount, now)
    if reason is not None:
        return EligibilityVerdict.reject(reason)

    if not conditions_hold(discount, receipt, now, tz):
        return EligibilityVerdict.reject(IneligibleReason.conditions_not_met)

    if isinstance(discount.terms, ComboTerms) and not combo_satisfied(discount.terms, receipt):
        return EligibilityVerdict.reject(IneligibleReason.combo_items_missing)

    return EligibilityVerdict.accept()


def catalog_status(discount: DiscountEntry, now: datetime) -> DiscountStatus:
    """Receipt-independent status label for the catalog screen."""
    reason = _window_and_usage(discount, ensure_utc(now))
    return {
        None: DiscountStatus.active,
        IneligibleReason.inactive: DiscountStatus.inactive,
        IneligibleReason.not_started: DiscountStatus.not_started,
        IneligibleReason.expired: DiscountStatus.expired,
        IneligibleReason.usage_limit_reached: DiscountStatus.usage_limit,
    }[reason]
