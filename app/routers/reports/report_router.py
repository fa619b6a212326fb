# app/routers/reports/report_router.py

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.reports.report_schemas import DiscountUsageReport
from app.services.reports.discount_report_service import discount_usage_report
from app.utils.response import APIResponse, APIError, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/reports", tags=["Reports"], responses={400: {"model": APIError}, 503: {"model": APIError}})
logger = get_logger(__name__)


@router.get("/discounts/usage", response_model=APIResponse[DiscountUsageReport])
async def discount_usage_report_api(
    db: AsyncSession = Depends(get_db),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
):
    logger.info(
        "Discount usage report",
        extra={"start_date": str(start_date), "end_date": str(end_date)},
    )
    data = await discount_usage_report(db, start_date, end_date)
    return success_response("Discount usage report generated", data)
