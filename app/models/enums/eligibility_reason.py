# app/models/enums/eligibility_reason.py
import enum


class IneligibleReason(str, enum.Enum):
    unknown_code = "unknown_code"
    inactive = "inactive"
    not_started = "not_started"
    expired = "expired"
    usage_limit_reached = "usage_limit_reached"
    conditions_not_met = "conditions_not_met"
    combo_items_missing = "combo_items_missing"


# Operator-facing label shown in the discount catalog
class DiscountStatus(str, enum.Enum):
    inactive = "inactive"
    not_started = "not_started"
    expired = "expired"
    usage_limit = "usage_limit"
    active = "active"
