"""Brasília calendar helpers.

The shop runs on Brasília time, a fixed UTC-3 offset (no DST since 2019).
Timestamps are stored in UTC; due dates are plain calendar dates.
"""

from datetime import date, datetime, time, timedelta, timezone, UTC
from typing import Optional

BRASILIA_TZ = timezone(timedelta(hours=-3), name="BRT")


def now_brasilia() -> datetime:
    return datetime.now(BRASILIA_TZ)


def brasilia_today() -> date:
    return now_brasilia().date()


def to_brasilia(value: datetime) -> datetime:
    """Convert an aware (or naive UTC) datetime to Brasília local time."""
    return as_utc(value).astimezone(BRASILIA_TZ)


def brasilia_midnight_utc(day: Optional[date] = None) -> datetime:
    """00:00 Brasília of ``day`` (default today) expressed in UTC."""
    day = day or brasilia_today()
    return datetime.combine(day, time(0, 0), tzinfo=BRASILIA_TZ).astimezone(UTC)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def days_between(start: date, end: date) -> int:
    return (end - start).days
