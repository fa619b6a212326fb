# app/routers/discounts/discount_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.discount_type import DiscountType
from app.schemas.discounts.discount_schemas import (
    DiscountCreate,
    DiscountUpdate,
    DiscountListData,
    DiscountOut,
    DiscountStatusOut,
    ApplyDiscountRequest,
    ApplyDiscountResult,
)
from app.services.discounts.discount_service import (
    create_discount,
    list_discounts,
    get_discount,
    get_discount_status,
    update_discount,
    toggle_discount_active,
    delete_discount,
)
from app.services.discounts.apply_discount_service import evaluate_and_apply
from app.utils.get_user import get_actor_name
from app.utils.response import APIResponse, APIError, success_response
from app.utils.logger import get_logger

router = APIRouter(
    prefix="/discounts",
    tags=["Discounts"],
    responses={400: {"model": APIError}, 404: {"model": APIError}, 409: {"model": APIError}, 503: {"model": APIError}},
)
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse[DiscountOut])
async def create_discount_api(
    payload: DiscountCreate,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    logger.info("Create discount", extra={"code": payload.code})
    data = await create_discount(db, payload, actor_name)
    return success_response("Discount created successfully", data)


@router.post("/apply", response_model=APIResponse[ApplyDiscountResult])
async def apply_discount_api(
    payload: ApplyDiscountRequest,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    logger.info(
        "Apply discount",
        extra={"code": payload.code, "receipt_id": payload.receipt_id},
    )
    data = await evaluate_and_apply(
        db,
        payload.code,
        payload.receipt_id,
        actor_name=actor_name,
    )
    return success_response("Discount applied successfully", data)


@router.get("/", response_model=APIResponse[DiscountListData])
async def list_discounts_api(
    db: AsyncSession = Depends(get_db),

    code: str | None = Query(None),
    name: str | None = Query(None),
    discount_type: DiscountType | None = Query(None),
    is_active: bool | None = Query(None),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    logger.info("List discounts")
    data = await list_discounts(
        db=db,
        code=code,
        name=name,
        discount_type=discount_type,
        is_active=is_active,
        page=page,
        page_size=page_size,
    )
    return success_response("Discounts fetched successfully", data)


@router.get("/{discount_id}", response_model=APIResponse[DiscountOut])
async def get_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Get discount", extra={"discount_id": discount_id})
    data = await get_discount(db, discount_id)
    return success_response("Discount fetched successfully", data)


@router.get("/{discount_id}/status", response_model=APIResponse[DiscountStatusOut])
async def get_discount_status_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
):
    data = await get_discount_status(db, discount_id)
    return success_response("Discount status fetched successfully", data)


@router.put("/{discount_id}", response_model=APIResponse[DiscountOut])
async def update_discount_api(
    discount_id: int,
    payload: DiscountUpdate,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    logger.info("Update discount", extra={"discount_id": discount_id})
    data = await update_discount(db, discount_id, payload, actor_name)
    return success_response("Discount updated successfully", data)


@router.patch("/{discount_id}/toggle-active", response_model=APIResponse[DiscountOut])
async def toggle_discount_active_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    logger.info("Toggle discount", extra={"discount_id": discount_id})
    data = await toggle_discount_active(db, discount_id, actor_name)
    return success_response("Discount status updated successfully", data)


@router.delete("/{discount_id}", response_model=APIResponse[dict])
async def delete_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    logger.info("Delete discount", extra={"discount_id": discount_id})
    data = await delete_discount(db, discount_id, actor_name)
    return success_response("Discount deleted successfully", data)
