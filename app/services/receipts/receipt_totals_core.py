from decimal import Decimal
from typing import Tuple

from app.core.config import COMBO_DISCOUNT_PERCENT
from app.core.exceptions import DuplicateApplicationError
from app.schemas.discounts.discount_schemas import DiscountEntry
from app.schemas.receipts.receipt_schemas import ReceiptSnapshot, AppliedDiscountEntry
from app.services.discounts.calculator_core import value_at_application
from app.utils.decimal_utils import ZERO, round2


def apply_discount(
    receipt: ReceiptSnapshot,
    discount: DiscountEntry,
    amount_saved: Decimal,
    combo_percent: Decimal = COMBO_DISCOUNT_PERCENT,
) -> Tuple[ReceiptSnapshot, DiscountEntry]:
    """
    Append one ledger entry and count one use.

    Returns new snapshots; the inputs are left untouched. The receipt total is
    not carried along but re-derived from the whole ledger on every read.
    """
    if receipt.has_discount(discount.id):
        raise DuplicateApplicationError(receipt.id, discount.id)

    if amount_saved < ZERO or amount_saved > receipt.subtotal:
        raise ValueError(
            f"amount_saved {amount_saved} outside [0, {receipt.subtotal}]"
        )

    entry = AppliedDiscountEntry(
        discount_id=discount.id,
        name=discount.name,
        kind=discount.kind,
        value_at_application=value_at_application(discount, combo_percent),
        amount_saved=round2(amount_saved),
    )

    new_receipt = receipt.model_copy(update={"ledger": receipt.ledger + (entry,)})
    new_discount = discount.model_copy(update={"uses_so_far": discount.uses_so_far + 1})
    return new_receipt, new_discount
