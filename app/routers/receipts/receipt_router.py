# app/routers/receipts/receipt_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.receipts.receipt_schemas import (
    ReceiptCreate,
    ReceiptOut,
    ReceiptListData,
    ReceiptCompleteResult,
    ItemStatusUpdate,
    ItemStatusResult,
)
from app.services.receipts.receipt_service import (
    create_receipt,
    get_receipt,
    list_receipts,
    complete_receipt,
)
from app.services.kitchen.kitchen_service import update_item_status
from app.utils.get_user import get_actor_name
from app.utils.response import APIResponse, APIError, success_response
from app.utils.logger import get_logger

router = APIRouter(
    prefix="/receipts",
    tags=["Receipts"],
    responses={400: {"model": APIError}, 404: {"model": APIError}, 409: {"model": APIError}, 503: {"model": APIError}},
)
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse[ReceiptOut])
async def create_receipt_api(
    payload: ReceiptCreate,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    if payload.created_by_name is None and actor_name:
        payload.created_by_name = actor_name

    logger.info("Create receipt", extra={"item_count": len(payload.items)})
    data = await create_receipt(db, payload)
    return success_response("Receipt created successfully", data)


@router.get("/", response_model=APIResponse[ReceiptListData])
async def list_receipts_api(
    db: AsyncSession = Depends(get_db),
    completed: bool | None = Query(None),
    is_delivery: bool | None = Query(None),
    table_number: int | None = Query(None, ge=1),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    data = await list_receipts(
        db,
        completed=completed,
        is_delivery=is_delivery,
        table_number=table_number,
        page=page,
        page_size=page_size,
    )
    return success_response("Receipts fetched successfully", data)


@router.get("/{receipt_id}", response_model=APIResponse[ReceiptOut])
async def get_receipt_api(
    receipt_id: int,
    db: AsyncSession = Depends(get_db),
):
    data = await get_receipt(db, receipt_id)
    return success_response("Receipt fetched successfully", data)


@router.put("/{receipt_id}/complete", response_model=APIResponse[ReceiptCompleteResult])
async def complete_receipt_api(
    receipt_id: int,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    logger.info("Complete receipt", extra={"receipt_id": receipt_id})
    data = await complete_receipt(db, receipt_id, actor_name=actor_name)
    return success_response("Receipt completed successfully", data)


@router.put(
    "/{receipt_id}/items/{item_id}/status",
    response_model=APIResponse[ItemStatusResult],
)
async def update_item_status_api(
    receipt_id: int,
    item_id: int,
    payload: ItemStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor_name: str | None = Depends(get_actor_name),
):
    logger.info(
        "Update item status",
        extra={"receipt_id": receipt_id, "item_id": item_id, "status": payload.status.value},
    )
    data = await update_item_status(
        db,
        receipt_id,
        item_id,
        payload.status,
        actor_name=actor_name,
    )
    message = "Item status updated successfully" if data.changed else "Item status unchanged"
    return success_response(message, data)
