# app/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"

    # ---------------- DISCOUNTS ----------------
    DISCOUNT_NOT_FOUND = "DISCOUNT_NOT_FOUND"
    DISCOUNT_CODE_EXISTS = "DISCOUNT_CODE_EXISTS"
    DISCOUNT_INVALID_VALUE = "DISCOUNT_INVALID_VALUE"
    DISCOUNT_INVALID_RANGE = "DISCOUNT_INVALID_RANGE"
    DISCOUNT_NOT_ELIGIBLE = "DISCOUNT_NOT_ELIGIBLE"
    DISCOUNT_ALREADY_APPLIED = "DISCOUNT_ALREADY_APPLIED"
    DISCOUNT_USAGE_LIMIT_REACHED = "DISCOUNT_USAGE_LIMIT_REACHED"
    DISCOUNT_VERSION_CONFLICT = "DISCOUNT_VERSION_CONFLICT"

    # ---------------- RECEIPTS ----------------
    RECEIPT_NOT_FOUND = "RECEIPT_NOT_FOUND"
    RECEIPT_ITEM_NOT_FOUND = "RECEIPT_ITEM_NOT_FOUND"
    RECEIPT_INVALID_STATE = "RECEIPT_INVALID_STATE"
    ITEM_INVALID_TRANSITION = "ITEM_INVALID_TRANSITION"
    ITEM_STATUS_CONFLICT = "ITEM_STATUS_CONFLICT"
