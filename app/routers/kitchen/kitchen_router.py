# app/routers/kitchen/kitchen_router.py

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.kitchen.kitchen_schemas import KitchenPendingItem, KitchenReceiptGroup
from app.services.kitchen.kitchen_service import list_pending, list_by_table
from app.utils.response import APIResponse, APIError, success_response

router = APIRouter(prefix="/kitchen", tags=["Kitchen"], responses={503: {"model": APIError}})


@router.get("/pending", response_model=APIResponse[List[KitchenPendingItem]])
async def list_pending_api(db: AsyncSession = Depends(get_db)):
    data = await list_pending(db)
    return success_response("Pending items fetched successfully", data)


@router.get("/by-table", response_model=APIResponse[List[KitchenReceiptGroup]])
async def list_by_table_api(db: AsyncSession = Depends(get_db)):
    data = await list_by_table(db)
    return success_response("Open orders fetched successfully", data)
