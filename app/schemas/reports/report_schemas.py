from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from datetime import date

from app.models.enums.discount_type import DiscountType


class DiscountUsageRow(BaseModel):
    discount_id: int
    code: str
    name: str
    discount_type: DiscountType
    times_used: int
    total_discount_amount: Decimal
    total_revenue: Decimal
    average_order_value: Decimal


class DiscountUsageReport(BaseModel):
    start_date: Optional[date]
    end_date: Optional[date]
    items: List[DiscountUsageRow]
