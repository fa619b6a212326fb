"""Tests for discount catalog management."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update
from pydantic import ValidationError

from app.core.db import AsyncSessionLocal
from app.core.exceptions import AppException, NotFoundError, ConcurrencyConflictError
from app.constants.error_codes import ErrorCode
from app.models.discounts.discount_models import Discount
from app.models.enums.discount_type import DiscountType
from app.models.enums.eligibility_reason import DiscountStatus
from app.schemas.discounts.discount_schemas import DiscountUpdate
from app.services.discounts.apply_discount_service import evaluate_and_apply
from app.services.discounts import discount_service
from app.services.discounts.discount_service import (
    get_discount,
    get_discount_status,
    list_discounts,
    update_discount,
    toggle_discount_active,
    delete_discount,
    find_discount_by_code,
    to_discount_entry,
)
from app.utils.datetime_utils import utc_now


class TestCreateDiscount:
    async def test_create_normalises_code(self, make_discount):
        discount = await make_discount(code=" save10 ")
        assert discount.code == "SAVE10"
        assert discount.status == DiscountStatus.active
        assert discount.usage_count == 0
        assert discount.amount is None

    async def test_duplicate_code(self, make_discount):
        await make_discount()
        with pytest.raises(AppException) as exc:
            await make_discount(name="Other")
        assert exc.value.status_code == 409
        assert exc.value.error_code == ErrorCode.DISCOUNT_CODE_EXISTS

    async def test_code_alphabet(self, make_discount):
        with pytest.raises(AppException) as exc:
            await make_discount(code="SAVE-10")
        assert exc.value.error_code == ErrorCode.VALIDATION_ERROR

    async def test_invalid_range(self, make_discount):
        now = utc_now()
        with pytest.raises(AppException) as exc:
            await make_discount(start_date=now, end_date=now - timedelta(days=1))
        assert exc.value.error_code == ErrorCode.DISCOUNT_INVALID_RANGE

    async def test_percentage_above_hundred(self, make_discount):
        with pytest.raises(ValidationError):
            await make_discount(percentage="100.5")

    async def test_amount_required(self, make_discount):
        with pytest.raises(AppException) as exc:
            await make_discount(discount_type=DiscountType.amount, percentage=None)
        assert exc.value.error_code == ErrorCode.DISCOUNT_INVALID_VALUE

    async def test_combo_requires_items(self, make_discount):
        with pytest.raises(AppException):
            await make_discount(discount_type=DiscountType.combo, percentage=None)

    async def test_items_only_for_combo(self, make_discount):
        with pytest.raises(AppException):
            await make_discount(items=[{"item_id": 1}])

    async def test_conditions_round_trip_into_entry(self, db, make_discount):
        await make_discount(conditions={"min_amount": "25.50", "day_of_week": [5, 6, 5]})

        entry = to_discount_entry(await find_discount_by_code(db, "save10"))

        kinds = {c.type: c for c in entry.conditions}
        assert kinds["min_amount"].threshold == Decimal("25.50")
        assert kinds["day_of_week"].allowed_days == frozenset({5, 6})


class TestReadDiscounts:
    async def test_list_filters(self, db, make_discount):
        await make_discount()
        await make_discount(code="LUNCH", name="Lunch deal", discount_type=DiscountType.amount, percentage=None, amount="3")

        by_type = await list_discounts(
            db=db, code=None, name=None, discount_type=DiscountType.amount,
            is_active=None, page=1, page_size=20,
        )
        assert [d.code for d in by_type.items] == ["LUNCH"]

        by_name = await list_discounts(
            db=db, code=None, name="ten", discount_type=None,
            is_active=None, page=1, page_size=20,
        )
        assert [d.code for d in by_name.items] == ["SAVE10"]

    async def test_get_missing(self, db):
        with pytest.raises(NotFoundError):
            await get_discount(db, 123)

    async def test_status_usage_limit(self, db, make_discount, make_receipt):
        discount = await make_discount(max_receipts=1)
        receipt = await make_receipt()
        await evaluate_and_apply(db, "SAVE10", receipt.id)

        status = await get_discount_status(db, discount.id)
        assert status.status == DiscountStatus.usage_limit
        assert status.usage_count == 1

    async def test_status_not_started(self, db, make_discount):
        now = utc_now()
        discount = await make_discount(start_date=now + timedelta(days=1), end_date=now + timedelta(days=2))
        assert (await get_discount_status(db, discount.id)).status == DiscountStatus.not_started


class TestWriteDiscounts:
    async def test_update_values(self, db, make_discount):
        discount = await make_discount()
        updated = await update_discount(
            db, discount.id, DiscountUpdate(percentage=Decimal("15"), note="autumn"), "Ana"
        )
        assert updated.percentage == Decimal("15.00")
        assert updated.note == "autumn"

    async def test_update_switches_type(self, db, make_discount):
        discount = await make_discount()
        updated = await update_discount(
            db, discount.id, DiscountUpdate(discount_type=DiscountType.amount, amount=Decimal("4")),
        )
        assert updated.discount_type == DiscountType.amount
        assert updated.amount == Decimal("4.00")
        assert updated.percentage is None

    async def test_update_replaces_items(self, db, make_discount):
        discount = await make_discount(
            code="COMBO",
            discount_type=DiscountType.combo,
            percentage=None,
            items=[{"item_id": 1, "min_quantity": 2}],
        )
        updated = await update_discount(
            db, discount.id, DiscountUpdate(items=[{"item_id": 1, "min_quantity": 1}, {"item_id": 2}]),
        )
        assert sorted((i.item_id, i.min_quantity) for i in updated.items) == [(1, 1), (2, 1)]

    async def test_update_cap_below_usage(self, db, make_discount, make_receipt):
        discount = await make_discount(max_receipts=5)
        for _ in range(2):
            receipt = await make_receipt()
            await evaluate_and_apply(db, "SAVE10", receipt.id)

        with pytest.raises(AppException) as exc:
            await update_discount(db, discount.id, DiscountUpdate(max_receipts=1))
        assert exc.value.error_code == ErrorCode.DISCOUNT_INVALID_VALUE

    async def test_empty_update(self, db, make_discount):
        discount = await make_discount()
        with pytest.raises(AppException):
            await update_discount(db, discount.id, DiscountUpdate())

    async def test_toggle(self, db, make_discount):
        discount = await make_discount()

        off = await toggle_discount_active(db, discount.id)
        assert not off.is_active
        assert off.status == DiscountStatus.inactive

        on = await toggle_discount_active(db, discount.id)
        assert on.is_active

    async def test_soft_delete(self, db, make_discount):
        discount = await make_discount()

        deleted = await delete_discount(db, discount.id)

        assert deleted == {"id": discount.id, "code": "SAVE10"}
        assert await find_discount_by_code(db, "SAVE10") is None
        with pytest.raises(NotFoundError):
            await delete_discount(db, discount.id)


class TestUpdateGuards:
    @pytest.mark.parametrize("field", ["name", "code", "discount_type", "start_date", "end_date"])
    def test_null_rejected_for_required_fields(self, field):
        with pytest.raises(ValidationError):
            DiscountUpdate(**{field: None})

    def test_null_allowed_for_optional_fields(self):
        payload = DiscountUpdate(max_receipts=None, note=None)
        assert payload.model_dump(exclude_unset=True) == {"max_receipts": None, "note": None}

    def test_percentage_precision(self):
        with pytest.raises(ValidationError):
            DiscountUpdate(percentage=Decimal("12.345"))
        assert DiscountUpdate(percentage=Decimal("12.34")).percentage == Decimal("12.34")

    async def test_rename_onto_live_code(self, db, make_discount):
        await make_discount()
        other = await make_discount(code="SAVE20", name="Twenty")

        with pytest.raises(AppException) as exc:
            await update_discount(db, other.id, DiscountUpdate(code="save10"))
        assert exc.value.status_code == 409
        assert exc.value.error_code == ErrorCode.DISCOUNT_CODE_EXISTS

    async def test_code_race_reported_as_duplicate(self, db, make_discount, monkeypatch):
        await make_discount()
        other = await make_discount(code="SAVE20", name="Twenty")

        async def skip_check(*args, **kwargs):
            return None

        monkeypatch.setattr(discount_service, "_ensure_code_free", skip_check)

        with pytest.raises(AppException) as exc:
            await update_discount(db, other.id, DiscountUpdate(code="SAVE10"))
        assert exc.value.error_code == ErrorCode.DISCOUNT_CODE_EXISTS

    async def test_usage_bump_during_update_is_a_conflict(self, db, make_discount, monkeypatch):
        discount = await make_discount(max_receipts=5)

        async def bump_usage(*args, **kwargs):
            async with AsyncSessionLocal() as other:
                await other.execute(
                    update(Discount).where(Discount.id == discount.id).values(usage_count=3)
                )
                await other.commit()

        monkeypatch.setattr(discount_service, "_ensure_code_free", bump_usage)

        with pytest.raises(ConcurrencyConflictError) as exc:
            await update_discount(db, discount.id, DiscountUpdate(code="SAVE11", max_receipts=2))
        assert exc.value.error_code == ErrorCode.DISCOUNT_VERSION_CONFLICT

        stored = await get_discount(db, discount.id)
        assert stored.code == "SAVE10"
        assert stored.max_receipts == 5


class TestCodeReuse:
    async def test_deleted_code_can_be_recreated(self, db, make_discount):
        first = await make_discount()
        await delete_discount(db, first.id)

        second = await make_discount()

        assert second.id != first.id
        assert (await find_discount_by_code(db, "SAVE10")).id == second.id

    async def test_live_duplicate_still_rejected(self, db, make_discount):
        first = await make_discount()
        await delete_discount(db, first.id)
        await make_discount()

        with pytest.raises(AppException) as exc:
            await make_discount(name="Third")
        assert exc.value.error_code == ErrorCode.DISCOUNT_CODE_EXISTS
