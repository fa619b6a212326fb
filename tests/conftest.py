"""
Shared fixtures.

The environment is configured before any ``app`` import because
``app.core.config`` validates it at import time.
"""

import os
import tempfile
from datetime import timedelta
from decimal import Decimal

_TMP_DIR = tempfile.mkdtemp(prefix="restaurant-orders-tests-")

os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["DISCOUNT_TIMEZONE"] = "UTC"
os.environ["COMBO_DISCOUNT_PERCENT"] = "10"

import pytest
import httpx

from app.core.db import Base, engine, AsyncSessionLocal
from app.models.enums.discount_type import DiscountType
from app.schemas.discounts.discount_schemas import DiscountCreate
from app.schemas.receipts.receipt_schemas import ReceiptCreate
from app.services.discounts.discount_service import create_discount
from app.services.kitchen.inflight import inflight_items
from app.services.receipts.receipt_service import create_receipt
from app.utils.datetime_utils import utc_now


@pytest.fixture
async def schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def clear_inflight():
    inflight_items._ids.clear()
    yield
    inflight_items._ids.clear()


@pytest.fixture
async def db(schema):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(schema):
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_discount(db):
    """Create a discount that is live right now unless overridden."""

    async def _make(**overrides):
        now = utc_now()
        data = {
            "name": "Ten percent off",
            "code": "SAVE10",
            "discount_type": DiscountType.percentage,
            "percentage": Decimal("10"),
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=1),
        }
        data.update(overrides)
        return await create_discount(db, DiscountCreate(**data), "tester")

    return _make


@pytest.fixture
def make_receipt(db):
    """Create a receipt; ``items`` is a list of (item_id, quantity, unit_price)."""

    async def _make(items=((1, 1, "100.00"),), **overrides):
        data = {
            "table_number": 4,
            "created_by_name": "tester",
            "items": [
                {
                    "item_id": item_id,
                    "item_name": f"Item {item_id}",
                    "quantity": quantity,
                    "unit_price": Decimal(price),
                }
                for item_id, quantity, price in items
            ],
        }
        data.update(overrides)
        return await create_receipt(db, ReceiptCreate(**data))

    return _make
