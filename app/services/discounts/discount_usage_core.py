from sqlalchemy import update, or_
from app.models.discounts.discount_models import Discount


def _claim_usage_stmt(*, discount_id: int):
    """
    Increment usage_count by one only while it is below max_receipts.

    Single conditional UPDATE, so two concurrent claims can never both pass
    the cap check. Returns no row when the cap is already reached.
    """
    return (
        update(Discount)
        .where(
            Discount.id == discount_id,
            Discount.is_deleted.is_(False),
            or_(
                Discount.max_receipts.is_(None),
                Discount.usage_count < Discount.max_receipts,
            ),
        )
        .values(
            usage_count=Discount.usage_count + 1,
        )
        .returning(
            Discount.usage_count,
        )
        .execution_options(synchronize_session=False)
    )
