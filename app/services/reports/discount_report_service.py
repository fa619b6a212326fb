from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.db import dependency_guard
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.models.discounts.discount_models import Discount
from app.models.receipts.receipt_models import Receipt, ReceiptDiscount
from app.schemas.reports.report_schemas import DiscountUsageRow, DiscountUsageReport
from app.utils.decimal_utils import ZERO, round2, to_decimal


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


async def discount_usage_report(
    db: AsyncSession,
    start_date: date | None = None,
    end_date: date | None = None,
) -> DiscountUsageReport:
    """
    Per-discount usage read from the receipt ledger. Both dates are
    inclusive UTC days. Revenue is the final total of the receipts the
    discount was applied to.
    """
    if start_date and end_date and start_date > end_date:
        raise AppException(
            400,
            "start_date must be on or before end_date",
            ErrorCode.VALIDATION_ERROR,
        )

    query = (
        select(
            Discount.id,
            Discount.code,
            Discount.name,
            Discount.discount_type,
            func.count(ReceiptDiscount.id),
            func.coalesce(func.sum(ReceiptDiscount.amount_saved), 0),
            func.coalesce(func.sum(Receipt.total), 0),
        )
        .join(ReceiptDiscount, ReceiptDiscount.discount_id == Discount.id)
        .join(Receipt, Receipt.id == ReceiptDiscount.receipt_id)
        .where(Receipt.is_deleted.is_(False))
        .group_by(Discount.id, Discount.code, Discount.name, Discount.discount_type)
        .order_by(func.count(ReceiptDiscount.id).desc(), Discount.code)
    )

    if start_date:
        query = query.where(ReceiptDiscount.created_at >= _day_start(start_date))
    if end_date:
        query = query.where(ReceiptDiscount.created_at < _day_start(end_date + timedelta(days=1)))

    async with dependency_guard(db, "discount usage report"):
        result = await db.execute(query)
        rows = result.all()

    items = []
    for discount_id, code, name, discount_type, times_used, saved, revenue in rows:
        revenue = round2(to_decimal(revenue))
        items.append(
            DiscountUsageRow(
                discount_id=discount_id,
                code=code,
                name=name,
                discount_type=discount_type,
                times_used=times_used,
                total_discount_amount=round2(to_decimal(saved)),
                total_revenue=revenue,
                average_order_value=round2(revenue / times_used) if times_used else ZERO,
            )
        )

    return DiscountUsageReport(start_date=start_date, end_date=end_date, items=items)
