# app/core/config.py

import os
from decimal import Decimal, InvalidOperation
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from app.utils.logger import get_logger

logger = get_logger(__name__)

load_dotenv()

# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production"}:
    raise ValueError("APP_ENV must be development | staging | production")

IS_PRODUCTION = APP_ENV == "production"

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./dev.db")

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = os.getenv("DB_ECHO_POOL", "false").lower() == "true"

# ---- SSL ----
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "true").lower() == "true"
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("Running in production with relaxed SSL verification")

# =====================================================
# DISCOUNTS
# =====================================================
# Day-of-week conditions are evaluated in this zone, not in UTC
DISCOUNT_TIMEZONE_NAME = os.getenv("DISCOUNT_TIMEZONE", "UTC")
try:
    DISCOUNT_TIMEZONE = ZoneInfo(DISCOUNT_TIMEZONE_NAME)
except (ZoneInfoNotFoundError, ValueError):
    raise ValueError(f"DISCOUNT_TIMEZONE is not a valid IANA zone: {DISCOUNT_TIMEZONE_NAME}")

try:
    COMBO_DISCOUNT_PERCENT = Decimal(os.getenv("COMBO_DISCOUNT_PERCENT", "10"))
except InvalidOperation:
    raise ValueError("COMBO_DISCOUNT_PERCENT must be a decimal number")

if not Decimal("0") <= COMBO_DISCOUNT_PERCENT <= Decimal("100"):
    raise ValueError("COMBO_DISCOUNT_PERCENT must be between 0 and 100")
