from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, asc

from app.models.receipts.receipt_models import Receipt, ReceiptItem
from app.models.enums.item_status import ReceiptItemStatus
from app.schemas.receipts.receipt_schemas import ItemStatusResult
from app.schemas.kitchen.kitchen_schemas import (
    KitchenPendingItem,
    KitchenReceiptItem,
    KitchenReceiptGroup,
)
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.core.db import dependency_guard
from app.core.exceptions import NotFoundError, ConcurrencyConflictError
from app.services.kitchen.inflight import inflight_items
from app.services.kitchen.item_status_core import transition, roll_up
from app.services.receipts.receipt_service import load_receipt, order_status_of
from app.utils.activity_helpers import record_activity
from app.utils.logger import get_logger

logger = get_logger(__name__)

NOT_DONE_STATUSES = (
    ReceiptItemStatus.pending,
    ReceiptItemStatus.preparing,
    ReceiptItemStatus.ready,
)


def _find_item(receipt: Receipt, item_id: int) -> ReceiptItem:
    for item in receipt.items:
        if item.id == item_id:
            return item
    raise NotFoundError("Receipt item not found", ErrorCode.RECEIPT_ITEM_NOT_FOUND)


def _unchanged(receipt: Receipt, item: ReceiptItem) -> ItemStatusResult:
    return ItemStatusResult(
        receipt_id=receipt.id,
        item_id=item.id,
        item_status=item.status,
        order_status=order_status_of(receipt),
        changed=False,
    )


# ---------------- UPDATE STATUS ----------------
async def update_item_status(
    db: AsyncSession,
    receipt_id: int,
    item_id: int,
    new_status: ReceiptItemStatus,
    *,
    actor_name: str | None = None,
) -> ItemStatusResult:
    """
    Move one item forward in the kitchen workflow and return the new order
    status.

    A second submission for an item that is still being processed is
    answered with the current state and writes nothing. The write itself
    only lands if the stored status is still the one the transition was
    validated against.
    """
    with inflight_items.hold(item_id) as claimed:
        async with dependency_guard(db, "update item status"):
            receipt = await load_receipt(db, receipt_id)
            item = _find_item(receipt, item_id)

            if not claimed:
                logger.info(
                    "Duplicate status submission ignored",
                    extra={"receipt_id": receipt_id, "item_id": item_id},
                )
                return _unchanged(receipt, item)

            current = item.status
            target = transition(current, new_status)
            if target == current:
                return _unchanged(receipt, item)

            stmt = (
                update(ReceiptItem)
                .where(
                    ReceiptItem.id == item_id,
                    ReceiptItem.receipt_id == receipt_id,
                    ReceiptItem.status == current,
                )
                .values(status=target)
                .returning(ReceiptItem.id)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)

            if result.scalar_one_or_none() is None:
                await db.rollback()
                raise ConcurrencyConflictError(
                    "Item status was changed by another request",
                    ErrorCode.ITEM_STATUS_CONFLICT,
                )

            await db.commit()

        statuses = [target if i.id == item_id else i.status for i in receipt.items]
        order_status = roll_up(statuses, completed=receipt.completed_at is not None)

    logger.info(
        "Item status updated",
        extra={
            "receipt_id": receipt_id,
            "item_id": item_id,
            "old_status": current.value,
            "new_status": target.value,
            "order_status": order_status.value,
        },
    )

    await record_activity(
        code=ActivityCode.UPDATE_ITEM_STATUS,
        actor_name=actor_name,
        target_type="receipt_item",
        target_id=item_id,
        item_name=item.item_name,
        receipt_id=receipt_id,
        old_status=current.value,
        new_status=target.value,
    )

    return ItemStatusResult(
        receipt_id=receipt_id,
        item_id=item_id,
        item_status=target,
        order_status=order_status,
        changed=True,
    )


# ---------------- PENDING QUEUE ----------------
async def list_pending(db: AsyncSession) -> list[KitchenPendingItem]:
    """Items not yet served, oldest order first."""
    result = await db.execute(
        select(ReceiptItem, Receipt)
        .join(Receipt, Receipt.id == ReceiptItem.receipt_id)
        .where(
            Receipt.is_deleted.is_(False),
            Receipt.completed_at.is_(None),
            ReceiptItem.status.in_(NOT_DONE_STATUSES),
        )
        .order_by(asc(Receipt.created_at), asc(ReceiptItem.id))
    )

    return [
        KitchenPendingItem(
            id=item.id,
            receipt_id=receipt.id,
            item_id=item.item_id,
            item_name=item.item_name,
            quantity=item.quantity,
            status=item.status,
            notes=item.notes,
            is_delivery=receipt.is_delivery,
            table_number=receipt.table_number,
            phone_number=receipt.phone_number,
            created_at=receipt.created_at,
        )
        for item, receipt in result.all()
    ]


# ---------------- BY TABLE ----------------
async def list_by_table(db: AsyncSession) -> list[KitchenReceiptGroup]:
    """Open orders with at least one item not yet done, grouped per receipt."""
    open_receipts = (
        select(ReceiptItem.receipt_id)
        .where(ReceiptItem.status != ReceiptItemStatus.done)
        .distinct()
    )

    result = await db.execute(
        select(Receipt)
        .where(
            Receipt.is_deleted.is_(False),
            Receipt.completed_at.is_(None),
            Receipt.id.in_(open_receipts),
        )
        .order_by(asc(Receipt.created_at), asc(Receipt.id))
    )

    return [
        KitchenReceiptGroup(
            receipt_id=r.id,
            is_delivery=r.is_delivery,
            table_number=r.table_number,
            phone_number=r.phone_number,
            location=r.location,
            order_status=order_status_of(r),
            created_at=r.created_at,
            items=[KitchenReceiptItem.model_validate(i) for i in r.items],
        )
        for r in result.scalars().all()
    ]
