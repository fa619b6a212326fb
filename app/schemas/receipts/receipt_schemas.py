from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Tuple
from decimal import Decimal
from datetime import datetime

from app.models.enums.discount_type import DiscountType
from app.models.enums.item_status import ReceiptItemStatus, OrderStatus
from app.utils.decimal_utils import compute_total, round2
from app.utils.datetime_utils import ensure_utc


# =====================================================
# BASE
# =====================================================
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# =====================================================
# SNAPSHOT (what the discount engine sees)
# =====================================================
class LineItemSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: int
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    status: ReceiptItemStatus = ReceiptItemStatus.pending


class AppliedDiscountEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    discount_id: int
    name: str
    kind: DiscountType
    value_at_application: Decimal
    amount_saved: Decimal = Field(ge=0)


class ReceiptSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    subtotal: Decimal = Field(ge=0)
    created_at: datetime
    line_items: Tuple[LineItemSnapshot, ...] = ()
    ledger: Tuple[AppliedDiscountEntry, ...] = ()
    completed: bool = False

    @field_validator("created_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def total_discount(self) -> Decimal:
        # effective reduction; smaller than the ledger sum once the total is clamped at zero
        return round2(self.subtotal) - self.total

    @property
    def total(self) -> Decimal:
        # always re-derived from the full ledger
        return compute_total(self.subtotal, (e.amount_saved for e in self.ledger))

    def has_discount(self, discount_id: int) -> bool:
        return any(e.discount_id == discount_id for e in self.ledger)


# =====================================================
# INPUTS
# =====================================================
class ReceiptItemCreate(BaseModel):
    item_id: int
    item_name: str = Field(min_length=1, max_length=150)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    notes: Optional[str] = None


class ReceiptCreate(BaseModel):
    is_delivery: bool = False
    table_number: Optional[int] = Field(default=None, ge=1)
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    created_by_name: Optional[str] = None
    items: List[ReceiptItemCreate] = Field(min_length=1)


class ItemStatusUpdate(BaseModel):
    status: ReceiptItemStatus


# =====================================================
# OUTPUTS
# =====================================================
class ReceiptItemOut(ORMBase):
    id: int
    item_id: int
    item_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    status: ReceiptItemStatus
    notes: Optional[str]


class AppliedDiscountOut(ORMBase):
    discount_id: int
    discount_name: str
    discount_type: DiscountType
    discount_value: Decimal
    amount_saved: Decimal
    created_at: datetime


class ReceiptOut(ORMBase):
    id: int
    is_delivery: bool
    table_number: Optional[int]
    customer_name: Optional[str]
    phone_number: Optional[str]
    location: Optional[str]
    notes: Optional[str]
    created_by_name: Optional[str]

    items: List[ReceiptItemOut]
    applied_discounts: List[AppliedDiscountOut]

    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    order_status: OrderStatus

    created_at: datetime
    completed_at: Optional[datetime]


class ReceiptListItem(BaseModel):
    id: int
    is_delivery: bool
    table_number: Optional[int]
    customer_name: Optional[str]
    total: Decimal
    item_count: int
    order_status: OrderStatus
    created_at: datetime


class ReceiptListData(BaseModel):
    total: int
    items: List[ReceiptListItem]


class ItemStatusResult(BaseModel):
    receipt_id: int
    item_id: int
    item_status: ReceiptItemStatus
    order_status: OrderStatus
    changed: bool


class ReceiptCompleteResult(BaseModel):
    receipt_id: int
    order_status: OrderStatus
    completed_at: datetime
