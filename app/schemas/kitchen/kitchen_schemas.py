from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from app.models.enums.item_status import ReceiptItemStatus, OrderStatus


class KitchenPendingItem(BaseModel):
    id: int
    receipt_id: int
    item_id: int
    item_name: str
    quantity: int
    status: ReceiptItemStatus
    notes: Optional[str]
    is_delivery: bool
    table_number: Optional[int]
    phone_number: Optional[str]
    created_at: datetime


class KitchenReceiptItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    item_name: str
    quantity: int
    status: ReceiptItemStatus
    notes: Optional[str]


class KitchenReceiptGroup(BaseModel):
    receipt_id: int
    is_delivery: bool
    table_number: Optional[int]
    phone_number: Optional[str]
    location: Optional[str]
    order_status: OrderStatus
    created_at: datetime
    items: List[KitchenReceiptItem]
