# Discounts
from app.models.discounts.discount_models import Discount, DiscountCondition, DiscountItem

# Receipts
from app.models.receipts.receipt_models import Receipt, ReceiptItem, ReceiptDiscount

# Support
from app.models.support.activity_models import ActivityLog
