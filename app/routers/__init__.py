# app/routers/__init__.py

from .discounts.discount_router import router as discount_router

from .receipts.receipt_router import router as receipt_router
from .kitchen.kitchen_router import router as kitchen_router

from .reports.report_router import router as report_router
from .activity.activity_router import router as activity_router


__all__ = [
"discount_router",

"receipt_router",
"kitchen_router",

"report_router",
"activity_router",
]
