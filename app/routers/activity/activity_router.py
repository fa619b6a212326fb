# app/routers/activity/activity_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.activity.activity_schemas import ActivityFilters, ActivityListData
from app.services.activity.activity_service import list_activities
from app.utils.response import APIResponse, APIError, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/activities", tags=["Activities"], responses={400: {"model": APIError}, 503: {"model": APIError}})
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[ActivityListData])
async def list_activities_api(
    filters: ActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
):
    logger.info(
        "List activities requested",
        extra=filters.model_dump(exclude_none=True, mode="json"),
    )

    result = await list_activities(db=db, filters=filters)

    return success_response("Activities fetched successfully", result)


@router.get("/receipts/{receipt_id}", response_model=APIResponse[ActivityListData])
async def list_receipt_activities_api(
    receipt_id: int,
    filters: ActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
):
    filters = filters.model_copy(update={"receipt_id": receipt_id})
    result = await list_activities(db=db, filters=filters)

    return success_response("Receipt activities fetched successfully", result)
