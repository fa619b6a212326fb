# app/services/activity/activity_service.py

from datetime import datetime, time, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from app.models.support.activity_models import ActivityLog
from app.schemas.activity.activity_schemas import (
    ActivityFilters,
    ActivityOut,
    ActivityListData,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": ActivityLog.created_at,
    "code": ActivityLog.code,
    "actor_name": ActivityLog.actor_name,
}


def _day_start(day) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


async def list_activities(
    *,
    db: AsyncSession,
    filters: ActivityFilters,
) -> ActivityListData:
    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise AppException(
            400,
            "start_date must not be after end_date",
            ErrorCode.VALIDATION_ERROR,
        )

    sort_column = ALLOWED_SORT_FIELDS.get(filters.sort_by)
    if sort_column is None:
        raise AppException(
            400,
            "Invalid sort field",
            ErrorCode.VALIDATION_ERROR,
        )

    # -------------------------
    # Filters
    # -------------------------
    conditions = []
    if filters.code:
        conditions.append(ActivityLog.code == filters.code.strip().upper())
    if filters.actor_name:
        conditions.append(ActivityLog.actor_name.ilike(f"%{filters.actor_name}%"))
    if filters.target_type:
        conditions.append(ActivityLog.target_type == filters.target_type)
    if filters.target_id is not None:
        conditions.append(ActivityLog.target_id == filters.target_id)
    if filters.receipt_id is not None:
        conditions.append(ActivityLog.receipt_id == filters.receipt_id)
    if filters.start_date:
        conditions.append(ActivityLog.created_at >= _day_start(filters.start_date))
    if filters.end_date:
        conditions.append(ActivityLog.created_at < _day_start(filters.end_date + timedelta(days=1)))

    query = select(ActivityLog).where(*conditions)
    count_query = select(func.count(ActivityLog.id)).where(*conditions)

    # -------------------------
    # Sorting + pagination
    # -------------------------
    order_fn = desc if filters.sort_order == "desc" else asc
    query = (
        query.order_by(order_fn(sort_column), order_fn(ActivityLog.id))
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    )

    total = await db.scalar(count_query)
    result = await db.execute(query)
    activities = result.scalars().all()

    logger.info(
        "Activities fetched",
        extra={
            "total": total,
            "page": filters.page,
            "page_size": filters.page_size,
        },
    )

    return ActivityListData(
        total=total or 0,
        items=[ActivityOut.model_validate(a) for a in activities],
    )
