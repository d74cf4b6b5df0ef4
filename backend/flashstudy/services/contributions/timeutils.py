"""
UTC date helpers for day bucketing.

All contribution days are UTC calendar days. Timestamps without tzinfo
(e.g. from SQLite) are treated as UTC.
"""

from datetime import date, datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_day(value: datetime) -> date:
    """Calendar day (date portion) of a timestamp in UTC."""
    return ensure_utc(value).date()


def start_of_utc_day(value: datetime) -> datetime:
    """Midnight UTC of the timestamp's calendar day."""
    day = utc_day(value)
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
