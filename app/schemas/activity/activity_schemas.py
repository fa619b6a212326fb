# app/schemas/activity/activity_schemas.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import Query
from pydantic import BaseModel, ConfigDict


class ActivityFilters(BaseModel):
    code: Optional[str] = Query(None)
    actor_name: Optional[str] = Query(None)
    target_type: Optional[str] = Query(None)
    target_id: Optional[int] = Query(None)
    receipt_id: Optional[int] = Query(None)

    start_date: Optional[date] = Query(None)
    end_date: Optional[date] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query("created_at")
    sort_order: str = Query("desc")


class ActivityOut(BaseModel):
    id: int
    code: str
    actor_name: str
    message: str
    target_type: Optional[str]
    target_id: Optional[int]
    receipt_id: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityListData(BaseModel):
    total: int
    items: List[ActivityOut]
