from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.config import DISCOUNT_TIMEZONE, COMBO_DISCOUNT_PERCENT
from app.core.db import dependency_guard
from app.core.exceptions import (
    EligibilityError,
    DuplicateApplicationError,
    ConcurrencyConflictError,
)
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.models.receipts.receipt_models import ReceiptDiscount
from app.schemas.discounts.discount_schemas import ApplyDiscountResult, AppliedDiscountSummary
from app.services.discounts.discount_service import find_discount_by_code, to_discount_entry
from app.services.discounts.discount_usage_core import _claim_usage_stmt
from app.services.discounts.eligibility_core import evaluate, REASON_MESSAGES
from app.services.discounts.calculator_core import calculate
from app.services.receipts.receipt_service import load_receipt, to_receipt_snapshot
from app.services.receipts.receipt_totals_core import apply_discount
from app.utils.activity_helpers import record_activity
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def evaluate_and_apply(
    db: AsyncSession,
    code: str,
    receipt_id: int,
    *,
    now: datetime | None = None,
    actor_name: str | None = None,
) -> ApplyDiscountResult:
    """
    Validate ``code`` against the receipt and, when eligible, record the
    saving on the receipt ledger and consume one use of the discount.

    The use is claimed with a conditional UPDATE inside the same transaction
    as the ledger insert: losing the race for the last use rolls everything
    back with ConcurrencyConflictError.
    """
    now = ensure_utc(now) if now else utc_now()

    async with dependency_guard(db, "apply discount"):
        receipt = await load_receipt(db, receipt_id, for_update=True)
        discount = await find_discount_by_code(db, code)

        snapshot = to_receipt_snapshot(receipt)
        entry = to_discount_entry(discount) if discount else None

        # a repeat is reported as such even when this receipt used up the cap
        if entry is not None and snapshot.has_discount(entry.id):
            raise DuplicateApplicationError(receipt_id, entry.id)

        verdict = evaluate(entry, snapshot, now, DISCOUNT_TIMEZONE)
        if not verdict.eligible:
            logger.info(
                "Discount rejected",
                extra={"code": code, "receipt_id": receipt_id, "reason": verdict.reason.value},
            )
            raise EligibilityError(verdict.reason, REASON_MESSAGES[verdict.reason])

        amount_saved = calculate(entry, snapshot, COMBO_DISCOUNT_PERCENT)
        updated, _ = apply_discount(snapshot, entry, amount_saved, COMBO_DISCOUNT_PERCENT)
        ledger_entry = updated.ledger[-1]

        claimed = await db.execute(_claim_usage_stmt(discount_id=entry.id))
        usage_count = claimed.scalar_one_or_none()
        if usage_count is None:
            await db.rollback()
            logger.warning(
                "Discount usage claim lost",
                extra={"discount_id": entry.id, "receipt_id": receipt_id},
            )
            raise ConcurrencyConflictError(
                "Discount usage limit was reached by another order",
                ErrorCode.DISCOUNT_USAGE_LIMIT_REACHED,
            )

        receipt.applied_discounts.append(
            ReceiptDiscount(
                discount_id=ledger_entry.discount_id,
                discount_name=ledger_entry.name,
                discount_type=ledger_entry.kind,
                discount_value=ledger_entry.value_at_application,
                amount_saved=ledger_entry.amount_saved,
            )
        )
        receipt.discount_amount = updated.total_discount
        receipt.total = updated.total

        try:
            await db.flush()
        except IntegrityError:
            # same receipt + discount committed by a parallel request
            await db.rollback()
            raise DuplicateApplicationError(receipt_id, entry.id)

        await db.commit()

    logger.info(
        "Discount applied",
        extra={
            "code": entry.code,
            "receipt_id": receipt_id,
            "amount_saved": str(ledger_entry.amount_saved),
            "usage_count": usage_count,
        },
    )

    await record_activity(
        code=ActivityCode.APPLY_DISCOUNT,
        actor_name=actor_name,
        target_type="receipt",
        target_id=receipt_id,
        target_code=entry.code,
        receipt_id=receipt_id,
        amount_saved=ledger_entry.amount_saved,
    )

    return ApplyDiscountResult(
        receipt_id=receipt_id,
        discount_applied=AppliedDiscountSummary(
            discount_id=entry.id,
            code=entry.code,
            name=entry.name,
            type=entry.kind,
            discount_amount=ledger_entry.amount_saved,
        ),
        subtotal=updated.subtotal,
        total_discount=updated.total_discount,
        new_total=updated.total,
        usage_count=usage_count,
    )
