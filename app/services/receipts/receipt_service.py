from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, desc

from app.models.receipts.receipt_models import Receipt, ReceiptItem
from app.models.enums.item_status import ReceiptItemStatus, OrderStatus
from app.schemas.receipts.receipt_schemas import (
    ReceiptCreate,
    ReceiptOut,
    ReceiptItemOut,
    AppliedDiscountOut,
    ReceiptListItem,
    ReceiptListData,
    ReceiptCompleteResult,
    ReceiptSnapshot,
    LineItemSnapshot,
    AppliedDiscountEntry,
)
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.core.db import dependency_guard
from app.core.exceptions import NotFoundError, PreconditionError
from app.services.kitchen.item_status_core import roll_up
from app.utils.activity_helpers import record_activity
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.decimal_utils import ZERO, round2
from app.utils.logger import get_logger

logger = get_logger(__name__)


def order_status_of(receipt: Receipt) -> OrderStatus:
    return roll_up(
        (i.status for i in receipt.items),
        completed=receipt.completed_at is not None,
    )


def to_receipt_snapshot(receipt: Receipt) -> ReceiptSnapshot:
    return ReceiptSnapshot(
        id=receipt.id,
        subtotal=receipt.subtotal,
        created_at=receipt.created_at,
        line_items=tuple(
            LineItemSnapshot(
                item_id=i.item_id,
                quantity=i.quantity,
                unit_price=i.unit_price,
                status=i.status,
            )
            for i in receipt.items
        ),
        ledger=tuple(
            AppliedDiscountEntry(
                discount_id=d.discount_id,
                name=d.discount_name,
                kind=d.discount_type,
                value_at_application=d.discount_value,
                amount_saved=d.amount_saved,
            )
            for d in receipt.applied_discounts
        ),
        completed=receipt.completed_at is not None,
    )


def _map_receipt(receipt: Receipt) -> ReceiptOut:
    return ReceiptOut(
        id=receipt.id,
        is_delivery=receipt.is_delivery,
        table_number=receipt.table_number,
        customer_name=receipt.customer_name,
        phone_number=receipt.phone_number,
        location=receipt.location,
        notes=receipt.notes,
        created_by_name=receipt.created_by_name,
        items=[ReceiptItemOut.model_validate(i) for i in receipt.items],
        applied_discounts=[AppliedDiscountOut.model_validate(d) for d in receipt.applied_discounts],
        subtotal=receipt.subtotal,
        discount_amount=receipt.discount_amount,
        total=receipt.total,
        order_status=order_status_of(receipt),
        created_at=receipt.created_at,
        completed_at=receipt.completed_at,
    )


async def load_receipt(db: AsyncSession, receipt_id: int, *, for_update: bool = False) -> Receipt:
    # conditional updates bypass the identity map, always read fresh rows
    query = (
        select(Receipt)
        .where(
            Receipt.id == receipt_id,
            Receipt.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update(of=Receipt)

    result = await db.execute(query)
    receipt = result.scalar_one_or_none()
    if not receipt:
        raise NotFoundError("Receipt not found", ErrorCode.RECEIPT_NOT_FOUND)
    return receipt


# ---------------- CREATE ----------------
async def create_receipt(db: AsyncSession, payload: ReceiptCreate) -> ReceiptOut:
    subtotal = ZERO
    items: list[ReceiptItem] = []

    for item in payload.items:
        line_total = round2(item.unit_price * item.quantity)
        subtotal += line_total
        items.append(
            ReceiptItem(
                item_id=item.item_id,
                item_name=item.item_name,
                quantity=item.quantity,
                unit_price=round2(item.unit_price),
                subtotal=line_total,
                status=ReceiptItemStatus.pending,
                notes=item.notes,
            )
        )

    receipt = Receipt(
        is_delivery=payload.is_delivery,
        table_number=payload.table_number,
        customer_name=payload.customer_name,
        phone_number=payload.phone_number,
        location=payload.location,
        notes=payload.notes,
        created_by_name=payload.created_by_name,
        subtotal=subtotal,
        discount_amount=Decimal("0.00"),
        total=subtotal,
        items=items,
    )

    async with dependency_guard(db, "create receipt"):
        db.add(receipt)
        await db.flush()
        await db.commit()
        await db.refresh(receipt)

    await record_activity(
        code=ActivityCode.CREATE_RECEIPT,
        actor_name=payload.created_by_name,
        target_type="receipt",
        target_id=receipt.id,
        receipt_id=receipt.id,
        total=receipt.total,
    )

    return _map_receipt(receipt)


# ---------------- GET ----------------
async def get_receipt(db: AsyncSession, receipt_id: int) -> ReceiptOut:
    receipt = await load_receipt(db, receipt_id)
    return _map_receipt(receipt)


# ---------------- LIST ----------------
async def list_receipts(
    db: AsyncSession,
    *,
    completed: bool | None = None,
    is_delivery: bool | None = None,
    table_number: int | None = None,
    page: int = 1,
    page_size: int = 20,
) -> ReceiptListData:
    query = select(Receipt).where(Receipt.is_deleted.is_(False))

    if completed is True:
        query = query.where(Receipt.completed_at.is_not(None))
    elif completed is False:
        query = query.where(Receipt.completed_at.is_(None))
    if is_delivery is not None:
        query = query.where(Receipt.is_delivery == is_delivery)
    if table_number is not None:
        query = query.where(Receipt.table_number == table_number)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    result = await db.execute(
        query.order_by(desc(Receipt.created_at), desc(Receipt.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    items = [
        ReceiptListItem(
            id=r.id,
            is_delivery=r.is_delivery,
            table_number=r.table_number,
            customer_name=r.customer_name,
            total=r.total,
            item_count=len(r.items),
            order_status=order_status_of(r),
            created_at=r.created_at,
        )
        for r in result.scalars().all()
    ]

    return ReceiptListData(total=total or 0, items=items)


# ---------------- COMPLETE ----------------
async def complete_receipt(
    db: AsyncSession,
    receipt_id: int,
    *,
    now: datetime | None = None,
    actor_name: str | None = None,
) -> ReceiptCompleteResult:
    """
    Mark the receipt completed regardless of item statuses.
    Completing twice is rejected so the first completed_at is preserved.
    """
    completed_at = ensure_utc(now) if now else utc_now()

    async with dependency_guard(db, "complete receipt"):
        stmt = (
            update(Receipt)
            .where(
                Receipt.id == receipt_id,
                Receipt.is_deleted.is_(False),
                Receipt.completed_at.is_(None),
            )
            .values(completed_at=completed_at)
            .returning(Receipt.id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)

        if result.scalar_one_or_none() is None:
            await db.rollback()
            # distinguish "no such receipt" from "already completed"
            await load_receipt(db, receipt_id)
            raise PreconditionError("Receipt is already completed")

        await db.commit()

    logger.info("Receipt completed", extra={"receipt_id": receipt_id})

    await record_activity(
        code=ActivityCode.COMPLETE_RECEIPT,
        actor_name=actor_name,
        target_type="receipt",
        target_id=receipt_id,
        receipt_id=receipt_id,
    )

    return ReceiptCompleteResult(
        receipt_id=receipt_id,
        order_status=OrderStatus.completed,
        completed_at=completed_at,
    )
