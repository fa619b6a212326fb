"""Tests for item status updates and kitchen views."""

import pytest
from sqlalchemy import select, update

from app.core.exceptions import InvalidTransitionError, NotFoundError, ConcurrencyConflictError
from app.constants.error_codes import ErrorCode
from app.core.db import AsyncSessionLocal
from app.models.enums.item_status import ReceiptItemStatus as S, OrderStatus
from app.models.receipts.receipt_models import ReceiptItem
from app.models.support.activity_models import ActivityLog
from app.services.kitchen import kitchen_service
from app.services.kitchen.inflight import inflight_items
from app.services.kitchen.kitchen_service import update_item_status, list_pending, list_by_table
from app.services.receipts.receipt_service import complete_receipt, get_receipt


class TestUpdateItemStatus:
    async def test_forward_and_roll_up(self, db, make_receipt):
        receipt = await make_receipt(items=[(1, 1, "5.00"), (2, 1, "5.00")])
        first, second = (i.id for i in receipt.items)

        result = await update_item_status(db, receipt.id, first, S.preparing)
        assert result.changed
        assert result.item_status == S.preparing
        assert result.order_status == OrderStatus.preparing

        await update_item_status(db, receipt.id, first, S.ready)
        result = await update_item_status(db, receipt.id, second, S.ready)
        assert result.order_status == OrderStatus.ready

        await update_item_status(db, receipt.id, first, S.done)
        result = await update_item_status(db, receipt.id, second, S.done)
        assert result.order_status == OrderStatus.done

        stored = await get_receipt(db, receipt.id)
        assert [i.status for i in stored.items] == [S.done, S.done]
        assert stored.order_status == OrderStatus.done

    async def test_same_status_is_noop(self, db, make_receipt):
        receipt = await make_receipt()
        item_id = receipt.items[0].id
        await update_item_status(db, receipt.id, item_id, S.preparing)

        result = await update_item_status(db, receipt.id, item_id, S.preparing)

        assert not result.changed
        assert result.item_status == S.preparing
        assert result.order_status == OrderStatus.preparing

    async def test_backward_rejected(self, db, make_receipt):
        receipt = await make_receipt()
        item_id = receipt.items[0].id
        await update_item_status(db, receipt.id, item_id, S.ready)

        with pytest.raises(InvalidTransitionError):
            await update_item_status(db, receipt.id, item_id, S.pending)

        stored = await get_receipt(db, receipt.id)
        assert stored.items[0].status == S.ready

    async def test_claim_released_after_failure(self, db, make_receipt):
        receipt = await make_receipt()
        item_id = receipt.items[0].id
        await update_item_status(db, receipt.id, item_id, S.done)

        with pytest.raises(InvalidTransitionError):
            await update_item_status(db, receipt.id, item_id, S.ready)
        assert item_id not in inflight_items

    async def test_duplicate_in_flight_submission_dropped(self, db, make_receipt):
        receipt = await make_receipt()
        item_id = receipt.items[0].id
        assert inflight_items.claim(item_id)
        try:
            result = await update_item_status(db, receipt.id, item_id, S.done)
        finally:
            inflight_items.release(item_id)

        assert not result.changed
        assert result.item_status == S.pending
        assert result.order_status == OrderStatus.pending
        stored = await get_receipt(db, receipt.id)
        assert stored.items[0].status == S.pending

    async def test_concurrent_writer_conflict(self, db, make_receipt, monkeypatch):
        receipt = await make_receipt()
        item_id = receipt.items[0].id
        real_load = kitchen_service.load_receipt

        async def load_then_other_writer(session, receipt_id):
            loaded = await real_load(session, receipt_id)
            async with AsyncSessionLocal() as other:
                await other.execute(
                    update(ReceiptItem).where(ReceiptItem.id == item_id).values(status=S.preparing)
                )
                await other.commit()
            return loaded

        monkeypatch.setattr(kitchen_service, "load_receipt", load_then_other_writer)

        with pytest.raises(ConcurrencyConflictError) as exc:
            await update_item_status(db, receipt.id, item_id, S.ready)
        assert exc.value.error_code == ErrorCode.ITEM_STATUS_CONFLICT
        assert item_id not in inflight_items

    async def test_missing_item(self, db, make_receipt):
        receipt = await make_receipt()
        with pytest.raises(NotFoundError) as exc:
            await update_item_status(db, receipt.id, 999, S.ready)
        assert exc.value.error_code == ErrorCode.RECEIPT_ITEM_NOT_FOUND

    async def test_item_from_other_receipt(self, db, make_receipt):
        first = await make_receipt()
        second = await make_receipt()
        with pytest.raises(NotFoundError):
            await update_item_status(db, second.id, first.items[0].id, S.ready)

    async def test_completed_receipt_keeps_completed_status(self, db, make_receipt):
        receipt = await make_receipt()
        await complete_receipt(db, receipt.id)

        result = await update_item_status(db, receipt.id, receipt.items[0].id, S.done)
        assert result.order_status == OrderStatus.completed

    async def test_activity_logged(self, db, make_receipt):
        receipt = await make_receipt()
        await update_item_status(db, receipt.id, receipt.items[0].id, S.preparing, actor_name="Chef")

        log = (
            await db.execute(select(ActivityLog).where(ActivityLog.code == "UPDATE_ITEM_STATUS"))
        ).scalar_one()
        assert log.actor_name == "Chef"
        assert log.target_id == receipt.items[0].id
        assert "pending to preparing" in log.message


class TestKitchenViews:
    async def test_pending_excludes_done_and_completed(self, db, make_receipt):
        open_receipt = await make_receipt(items=[(1, 1, "5.00"), (2, 1, "5.00"), (3, 1, "5.00")])
        closed = await make_receipt()
        a, b, c = (i.id for i in open_receipt.items)
        await update_item_status(db, open_receipt.id, b, S.ready)
        await update_item_status(db, open_receipt.id, c, S.done)
        await complete_receipt(db, closed.id)

        pending = await list_pending(db)

        assert [(p.id, p.status) for p in pending] == [(a, S.pending), (b, S.ready)]
        assert pending[0].table_number == 4

    async def test_by_table_groups_open_orders(self, db, make_receipt):
        first = await make_receipt(items=[(1, 1, "5.00"), (2, 1, "5.00")])
        served = await make_receipt(table_number=7)
        await update_item_status(db, served.id, served.items[0].id, S.done)
        await update_item_status(db, first.id, first.items[0].id, S.preparing)

        groups = await list_by_table(db)

        assert [g.receipt_id for g in groups] == [first.id]
        assert groups[0].order_status == OrderStatus.preparing
        assert [i.status for i in groups[0].items] == [S.preparing, S.pending]
