from datetime import datetime, timezone, tzinfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_weekday(value: datetime, tz: tzinfo) -> int:
    """Day of week in ``tz``, 0 = Sunday ... 6 = Saturday."""
    return (ensure_utc(value).astimezone(tz).weekday() + 1) % 7
