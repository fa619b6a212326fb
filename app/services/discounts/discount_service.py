# app/services/discounts/discount_service.py

import json
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError

from app.models.discounts.discount_models import Discount, DiscountCondition, DiscountItem
from app.models.enums.discount_type import DiscountType, ConditionType
from app.schemas.discounts.discount_schemas import (
    DiscountCreate,
    DiscountUpdate,
    DiscountOut,
    DiscountListData,
    DiscountStatusOut,
    DiscountConditionsIn,
    DiscountItemIn,
    DiscountConditionOut,
    DiscountItemOut,
    DiscountEntry,
    FixedAmountTerms,
    PercentageTerms,
    ComboTerms,
    ComboRequirement,
    MinAmountCondition,
    DayOfWeekCondition,
)
from app.core.exceptions import AppException, NotFoundError, ConcurrencyConflictError
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.services.discounts.eligibility_core import catalog_status
from app.utils.activity_helpers import record_activity
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.logger import get_logger

logger = get_logger(__name__)

CODE_ALPHABET = set("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")


# ---------------- SNAPSHOT ----------------
def to_discount_entry(discount: Discount) -> DiscountEntry:
    """Freeze an ORM row into the immutable entry the engine works on."""
    if discount.discount_type == DiscountType.amount:
        terms = FixedAmountTerms(value=discount.amount)
    elif discount.discount_type == DiscountType.percentage:
        terms = PercentageTerms(value=discount.percentage)
    elif discount.discount_type == DiscountType.combo:
        terms = ComboTerms(
            items=tuple(
                ComboRequirement(item_id=i.item_id, min_quantity=i.min_quantity)
                for i in discount.items
            )
        )
    else:
        raise TypeError(f"Unhandled discount type: {discount.discount_type!r}")

    conditions = []
    for c in discount.conditions:
        if c.condition_type == ConditionType.min_amount:
            conditions.append(MinAmountCondition(threshold=Decimal(c.value)))
        elif c.condition_type == ConditionType.day_of_week:
            conditions.append(DayOfWeekCondition(allowed_days=frozenset(json.loads(c.value))))

    return DiscountEntry(
        id=discount.id,
        code=discount.code,
        name=discount.name,
        terms=terms,
        valid_from=discount.start_date,
        valid_until=discount.end_date,
        max_uses=discount.max_receipts,
        uses_so_far=discount.usage_count or 0,
        active=discount.is_active,
        conditions=tuple(conditions),
    )


# ---------------- VALIDATION ----------------
def _validate_code(code: str):
    if not code or not set(code) <= CODE_ALPHABET:
        raise AppException(
            400,
            "Discount code may only contain A-Z, 0-9 and _",
            ErrorCode.VALIDATION_ERROR,
        )


def _validate_range(start_date: datetime, end_date: datetime):
    if ensure_utc(start_date) > ensure_utc(end_date):
        raise AppException(
            400,
            "Invalid date range",
            ErrorCode.DISCOUNT_INVALID_RANGE,
        )


def _validate_discount(
    discount_type: DiscountType,
    amount: Decimal | None,
    percentage: Decimal | None,
    item_count: int,
):
    if discount_type == DiscountType.amount:
        if amount is None or amount < 0:
            raise AppException(400, "Amount discount requires a non-negative amount", ErrorCode.DISCOUNT_INVALID_VALUE)
    elif discount_type == DiscountType.percentage:
        if percentage is None or percentage < 0 or percentage > 100:
            raise AppException(400, "Percentage must be between 0 and 100", ErrorCode.DISCOUNT_INVALID_VALUE)

    if discount_type == DiscountType.combo and item_count == 0:
        raise AppException(400, "Combo discount requires at least one item", ErrorCode.DISCOUNT_INVALID_VALUE)
    if discount_type != DiscountType.combo and item_count > 0:
        raise AppException(400, "Only combo discounts can list items", ErrorCode.DISCOUNT_INVALID_VALUE)


def _build_conditions(conditions: DiscountConditionsIn | None) -> list[DiscountCondition]:
    if conditions is None:
        return []

    rows = []
    if conditions.min_amount is not None:
        rows.append(
            DiscountCondition(
                condition_type=ConditionType.min_amount,
                value=str(conditions.min_amount),
            )
        )
    if conditions.day_of_week:
        rows.append(
            DiscountCondition(
                condition_type=ConditionType.day_of_week,
                value=json.dumps(sorted(set(conditions.day_of_week))),
            )
        )
    return rows


def _build_items(items: list[DiscountItemIn]) -> list[DiscountItem]:
    seen = set()
    rows = []
    for item in items:
        if item.item_id in seen:
            raise AppException(400, f"Item {item.item_id} listed twice", ErrorCode.VALIDATION_ERROR)
        seen.add(item.item_id)
        rows.append(
            DiscountItem(
                item_id=item.item_id,
                item_name=item.item_name,
                min_quantity=item.min_quantity,
            )
        )
    return rows


def _map_discount(discount: Discount, now: datetime | None = None) -> DiscountOut:
    return DiscountOut(
        id=discount.id,
        name=discount.name,
        code=discount.code,
        discount_type=discount.discount_type,
        amount=discount.amount,
        percentage=discount.percentage,

        is_active=discount.is_active,
        status=catalog_status(to_discount_entry(discount), now or utc_now()),

        start_date=discount.start_date,
        end_date=discount.end_date,
        max_receipts=discount.max_receipts,
        usage_count=discount.usage_count,
        note=discount.note,

        conditions=[DiscountConditionOut.model_validate(c) for c in discount.conditions],
        items=[DiscountItemOut.model_validate(i) for i in discount.items],

        created_at=discount.created_at,
        updated_at=discount.updated_at,
    )


async def _get_live_discount(db: AsyncSession, discount_id: int) -> Discount:
    discount = await db.get(Discount, discount_id, populate_existing=True)
    if not discount or discount.is_deleted:
        raise NotFoundError("Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)
    return discount


async def find_discount_by_code(db: AsyncSession, code: str) -> Discount | None:
    result = await db.execute(
        select(Discount).where(
            func.upper(Discount.code) == code.strip().upper(),
            Discount.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: int | None = None):
    query = select(Discount.id).where(
        Discount.code == code,
        Discount.is_deleted.is_(False),
    )
    if exclude_id:
        query = query.where(Discount.id != exclude_id)

    exists = await db.scalar(query)
    if exists:
        raise AppException(
            409,
            "Discount code already exists",
            ErrorCode.DISCOUNT_CODE_EXISTS,
        )


def _is_code_violation(exc: IntegrityError) -> bool:
    # postgres names the index, sqlite names the column
    message = str(exc.orig)
    return "uq_discount_code_live" in message or "discounts.code" in message


# ---------------- CREATE ----------------
async def create_discount(db: AsyncSession, payload: DiscountCreate, actor_name: str | None = None):
    _validate_code(payload.code)
    _validate_range(payload.start_date, payload.end_date)
    _validate_discount(
        payload.discount_type,
        payload.amount,
        payload.percentage,
        len(payload.items),
    )
    await _ensure_code_free(db, payload.code)

    discount = Discount(
        name=payload.name,
        code=payload.code,
        discount_type=payload.discount_type,
        amount=payload.amount if payload.discount_type == DiscountType.amount else None,
        percentage=payload.percentage if payload.discount_type == DiscountType.percentage else None,
        start_date=payload.start_date,
        end_date=payload.end_date,
        max_receipts=payload.max_receipts,
        usage_count=0,
        is_active=True,
        note=payload.note,
        conditions=_build_conditions(payload.conditions),
        items=_build_items(payload.items),
    )

    try:
        db.add(discount)
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if not _is_code_violation(exc):
            raise
        raise AppException(
            409,
            "Discount code already exists",
            ErrorCode.DISCOUNT_CODE_EXISTS,
        )

    await db.commit()
    await db.refresh(discount)

    await record_activity(
        code=ActivityCode.CREATE_DISCOUNT,
        actor_name=actor_name,
        target_type="discount",
        target_id=discount.id,
        target_name=discount.name,
        target_code=discount.code,
    )

    return _map_discount(discount)


# ---------------- GET ----------------
async def get_discount(db: AsyncSession, discount_id: int):
    discount = await _get_live_discount(db, discount_id)
    return _map_discount(discount)


async def get_discount_status(
    db: AsyncSession,
    discount_id: int,
    now: datetime | None = None,
) -> DiscountStatusOut:
    discount = await _get_live_discount(db, discount_id)
    return DiscountStatusOut(
        id=discount.id,
        code=discount.code,
        is_active=discount.is_active,
        status=catalog_status(to_discount_entry(discount), now or utc_now()),
        usage_count=discount.usage_count,
        max_receipts=discount.max_receipts,
    )


# ---------------- LIST ----------------
async def list_discounts(
    *,
    db,
    code,
    name,
    discount_type,
    is_active,
    page,
    page_size,
):
    query = select(Discount).where(Discount.is_deleted.is_(False))

    if code:
        query = query.where(Discount.code.ilike(f"%{code}%"))
    if name:
        query = query.where(Discount.name.ilike(f"%{name}%"))
    if discount_type:
        query = query.where(Discount.discount_type == discount_type)
    if is_active is not None:
        query = query.where(Discount.is_active == is_active)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    result = await db.execute(
        query.order_by(Discount.created_at.desc(), Discount.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    now = utc_now()
    return DiscountListData(
        total=total or 0,
        items=[_map_discount(d, now) for d in result.scalars().all()],
    )


# ---------------- UPDATE ----------------
async def update_discount(
    db: AsyncSession,
    discount_id: int,
    payload: DiscountUpdate,
    actor_name: str | None = None,
):
    discount = await _get_live_discount(db, discount_id)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    if "code" in data:
        _validate_code(data["code"])
        await _ensure_code_free(db, data["code"], exclude_id=discount.id)

    _validate_range(
        data.get("start_date", discount.start_date),
        data.get("end_date", discount.end_date),
    )

    new_type = data.get("discount_type", discount.discount_type)
    item_count = len(payload.items) if payload.items is not None else len(discount.items)
    _validate_discount(
        new_type,
        data.get("amount", discount.amount),
        data.get("percentage", discount.percentage),
        item_count,
    )

    max_receipts = data.get("max_receipts", discount.max_receipts)
    if max_receipts is not None and max_receipts < discount.usage_count:
        raise AppException(
            400,
            "Usage limit cannot be lower than the current usage",
            ErrorCode.DISCOUNT_INVALID_VALUE,
        )

    for field in ("name", "code", "discount_type", "start_date", "end_date", "max_receipts", "note"):
        if field in data:
            setattr(discount, field, data[field])

    discount.amount = data.get("amount", discount.amount) if new_type == DiscountType.amount else None
    discount.percentage = data.get("percentage", discount.percentage) if new_type == DiscountType.percentage else None

    # clear + flush first so replaced rows never collide on the unique keys
    if payload.items is not None:
        discount.items.clear()
    if "conditions" in data:
        discount.conditions.clear()

    try:
        await db.flush()
        if payload.items is not None:
            discount.items.extend(_build_items(payload.items))
        if "conditions" in data:
            discount.conditions.extend(_build_conditions(payload.conditions))
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if _is_code_violation(exc):
            raise AppException(
                409,
                "Discount code already exists",
                ErrorCode.DISCOUNT_CODE_EXISTS,
            )
        # usage_count moved past the new limit between our read and this write
        raise ConcurrencyConflictError(
            "Discount was modified by another process",
            ErrorCode.DISCOUNT_VERSION_CONFLICT,
        )

    await db.commit()
    await db.refresh(discount)

    await record_activity(
        code=ActivityCode.UPDATE_DISCOUNT,
        actor_name=actor_name,
        target_type="discount",
        target_id=discount.id,
        target_name=discount.name,
        target_code=discount.code,
        changes=", ".join(data.keys()),
    )

    return _map_discount(discount)


# ---------------- TOGGLE ACTIVE ----------------
async def toggle_discount_active(
    db: AsyncSession,
    discount_id: int,
    actor_name: str | None = None,
):
    current = await _get_live_discount(db, discount_id)

    stmt = (
        update(Discount)
        .where(
            Discount.id == discount_id,
            Discount.is_deleted.is_(False),
            Discount.is_active.is_(current.is_active),
        )
        .values(is_active=not current.is_active)
        .returning(Discount.id)
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(stmt)
    if result.scalar_one_or_none() is None:
        await db.rollback()
        raise ConcurrencyConflictError(
            "Discount was modified by another process",
            ErrorCode.DISCOUNT_VERSION_CONFLICT,
        )

    await db.commit()
    await db.refresh(current)

    await record_activity(
        code=ActivityCode.TOGGLE_DISCOUNT,
        actor_name=actor_name,
        target_type="discount",
        target_id=current.id,
        target_code=current.code,
        is_active=current.is_active,
    )

    return _map_discount(current)


# ---------------- DELETE (soft) ----------------
async def delete_discount(
    db: AsyncSession,
    discount_id: int,
    actor_name: str | None = None,
):
    stmt = (
        update(Discount)
        .where(
            Discount.id == discount_id,
            Discount.is_deleted.is_(False),
        )
        .values(
            is_active=False,
            is_deleted=True,
        )
        .returning(Discount.id, Discount.name, Discount.code)
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(stmt)
    row = result.one_or_none()

    if not row:
        raise NotFoundError("Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)

    await db.commit()

    await record_activity(
        code=ActivityCode.DELETE_DISCOUNT,
        actor_name=actor_name,
        target_type="discount",
        target_id=row.id,
        target_name=row.name,
        target_code=row.code,
    )

    return {"id": row.id, "code": row.code}
