# app/schemas/discounts/discount_schemas.py

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Tuple, Union, FrozenSet

from app.models.enums.discount_type import DiscountType, ConditionType
from app.models.enums.eligibility_reason import IneligibleReason, DiscountStatus
from app.utils.datetime_utils import ensure_utc


# =====================================================
# CATALOG ENTRY (immutable snapshot used by the engine)
# =====================================================
class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class FixedAmountTerms(FrozenModel):
    kind: Literal["amount"] = "amount"
    value: Decimal = Field(ge=0)


class PercentageTerms(FrozenModel):
    kind: Literal["percentage"] = "percentage"
    value: Decimal = Field(ge=0, le=100)


class ComboRequirement(FrozenModel):
    item_id: int
    min_quantity: int = Field(default=1, ge=1)


class ComboTerms(FrozenModel):
    kind: Literal["combo"] = "combo"
    items: Tuple[ComboRequirement, ...] = Field(min_length=1)


DiscountTerms = Annotated[
    Union[FixedAmountTerms, PercentageTerms, ComboTerms],
    Field(discriminator="kind"),
]


class MinAmountCondition(FrozenModel):
    type: Literal["min_amount"] = "min_amount"
    threshold: Decimal = Field(ge=0)


class DayOfWeekCondition(FrozenModel):
    """0 = Sunday ... 6 = Saturday."""

    type: Literal["day_of_week"] = "day_of_week"
    allowed_days: FrozenSet[int]

    @field_validator("allowed_days")
    @classmethod
    def _days_in_range(cls, days):
        if any(d < 0 or d > 6 for d in days):
            raise ValueError("day_of_week values must be between 0 and 6")
        return days


DiscountConditionTerms = Annotated[
    Union[MinAmountCondition, DayOfWeekCondition],
    Field(discriminator="type"),
]


class DiscountEntry(FrozenModel):
    id: int
    code: str
    name: str
    terms: DiscountTerms
    valid_from: datetime
    valid_until: datetime
    max_uses: Optional[int] = Field(default=None, ge=0)
    uses_so_far: int = Field(default=0, ge=0)
    active: bool = True
    conditions: Tuple[DiscountConditionTerms, ...] = ()

    @field_validator("valid_from", "valid_until")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _invariants(self):
        if self.valid_from > self.valid_until:
            raise ValueError("valid_from must not be after valid_until")
        if self.max_uses is not None and self.uses_so_far > self.max_uses:
            raise ValueError("uses_so_far exceeds max_uses")
        return self

    @property
    def kind(self) -> DiscountType:
        return DiscountType(self.terms.kind)


class EligibilityVerdict(FrozenModel):
    reason: Optional[IneligibleReason] = None

    @property
    def eligible(self) -> bool:
        return self.reason is None

    @classmethod
    def accept(cls) -> "EligibilityVerdict":
        return cls()

    @classmethod
    def reject(cls, reason: IneligibleReason) -> "EligibilityVerdict":
        return cls(reason=reason)


# =====================================================
# CATALOG INPUTS
# =====================================================
class DiscountConditionsIn(BaseModel):
    min_amount: Optional[Decimal] = Field(default=None, ge=0)
    day_of_week: Optional[List[int]] = Field(default=None, min_length=1)

    @field_validator("day_of_week")
    @classmethod
    def _days_in_range(cls, days):
        if days is not None and any(d < 0 or d > 6 for d in days):
            raise ValueError("day_of_week values must be between 0 and 6")
        return days


class DiscountItemIn(BaseModel):
    item_id: int
    item_name: Optional[str] = None
    min_quantity: int = Field(default=1, ge=1)


def _normalise_code(code: str) -> str:
    return code.strip().upper()


class DiscountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=50)
    discount_type: DiscountType
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    percentage: Optional[Decimal] = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    start_date: datetime
    end_date: datetime
    max_receipts: Optional[int] = Field(default=None, ge=0)
    items: List[DiscountItemIn] = []
    conditions: Optional[DiscountConditionsIn] = None
    note: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _code(cls, code: str) -> str:
        return _normalise_code(code)


REQUIRED_ON_UPDATE = ("name", "code", "discount_type", "start_date", "end_date")


class DiscountUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    discount_type: Optional[DiscountType] = None
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    percentage: Optional[Decimal] = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_receipts: Optional[int] = Field(default=None, ge=0)
    items: Optional[List[DiscountItemIn]] = None
    conditions: Optional[DiscountConditionsIn] = None
    note: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _code(cls, code: Optional[str]) -> Optional[str]:
        return _normalise_code(code) if code is not None else None

    @model_validator(mode="after")
    def _no_null_for_required(self):
        # omitting a field keeps it; sending null would clear a NOT NULL column
        for field in REQUIRED_ON_UPDATE:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class ApplyDiscountRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    receipt_id: int

    @field_validator("code")
    @classmethod
    def _code(cls, code: str) -> str:
        code = _normalise_code(code)
        if not code:
            raise ValueError("code must not be blank")
        return code


# =====================================================
# OUTPUTS
# =====================================================
class DiscountConditionOut(BaseModel):
    id: int
    condition_type: ConditionType
    value: str

    model_config = ConfigDict(from_attributes=True)


class DiscountItemOut(BaseModel):
    id: int
    item_id: int
    item_name: Optional[str]
    min_quantity: int

    model_config = ConfigDict(from_attributes=True)


class DiscountOut(BaseModel):
    id: int
    name: str
    code: str
    discount_type: DiscountType
    amount: Optional[Decimal]
    percentage: Optional[Decimal]

    is_active: bool
    status: DiscountStatus

    start_date: datetime
    end_date: datetime
    max_receipts: Optional[int]
    usage_count: int
    note: Optional[str]

    conditions: List[DiscountConditionOut]
    items: List[DiscountItemOut]

    created_at: datetime
    updated_at: Optional[datetime]


class DiscountListData(BaseModel):
    total: int
    items: List[DiscountOut]


class AppliedDiscountSummary(BaseModel):
    discount_id: int
    code: str
    name: str
    type: DiscountType
    discount_amount: Decimal


class ApplyDiscountResult(BaseModel):
    receipt_id: int
    discount_applied: AppliedDiscountSummary
    subtotal: Decimal
    total_discount: Decimal
    new_total: Decimal
    usage_count: int


class DiscountStatusOut(BaseModel):
    id: int
    code: str
    is_active: bool
    status: DiscountStatus
    usage_count: int
    max_receipts: Optional[int]
