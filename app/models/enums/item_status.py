# app/models/enums/item_status.py
import enum


class ReceiptItemStatus(str, enum.Enum):
    pending = "pending"
    preparing = "preparing"
    ready = "ready"
    done = "done"


# Derived from item statuses plus the receipt's completed_at; never stored
class OrderStatus(str, enum.Enum):
    pending = "pending"
    preparing = "preparing"
    ready = "ready"
    done = "done"
    completed = "completed"
