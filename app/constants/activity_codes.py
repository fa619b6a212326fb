# app/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- DISCOUNTS ----------------
    CREATE_DISCOUNT = "CREATE_DISCOUNT"
    UPDATE_DISCOUNT = "UPDATE_DISCOUNT"
    TOGGLE_DISCOUNT = "TOGGLE_DISCOUNT"
    DELETE_DISCOUNT = "DELETE_DISCOUNT"
    APPLY_DISCOUNT = "APPLY_DISCOUNT"

    # ---------------- RECEIPTS ----------------
    CREATE_RECEIPT = "CREATE_RECEIPT"
    COMPLETE_RECEIPT = "COMPLETE_RECEIPT"

    # ---------------- KITCHEN ----------------
    UPDATE_ITEM_STATUS = "UPDATE_ITEM_STATUS"
