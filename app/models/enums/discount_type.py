# app/models/enums/discount_type.py
import enum


class DiscountType(str, enum.Enum):
    amount = "amount"
    percentage = "percentage"
    combo = "combo"


class ConditionType(str, enum.Enum):
    min_amount = "min_amount"
    day_of_week = "day_of_week"
