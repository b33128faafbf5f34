"""
Time helpers shared by validators and services.

Storage convention: every persisted timestamp is naive UTC.
Day boundaries ("today", "this calendar day") are computed in the
business timezone from settings and converted back to naive UTC.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from vigor.config import settings

_END_OF_DAY = time(23, 59, 59, 999000)


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.business_timezone)


def now_utc() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def utcnow() -> datetime:
    """Current time as naive UTC (storage convention)."""
    return now_utc().replace(tzinfo=None)


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_naive_utc(value: datetime) -> datetime:
    return as_aware(value).astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 datetime string into an aware datetime.

    Accepts `Z` and numeric offsets; naive strings are read as UTC.
    Raises ValueError on anything else, including date-only strings.
    """
    if not isinstance(value, str) or "T" not in value.upper():
        raise ValueError(f"not an ISO datetime: {value!r}")
    return as_aware(datetime.fromisoformat(value))


def isoformat_z(value: datetime) -> str:
    """Render as ISO-8601 in UTC with millisecond precision and a `Z` suffix."""
    utc = as_aware(value).astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_today(now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> date:
    tz = tz or business_tz()
    return as_aware(now or now_utc()).astimezone(tz).date()


def local_day_bounds(day: date, tz: Optional[ZoneInfo] = None) -> tuple[datetime, datetime]:
    """[00:00:00.000, 23:59:59.999] of `day` in the business timezone, as naive UTC."""
    tz = tz or business_tz()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, _END_OF_DAY, tzinfo=tz)
    return to_naive_utc(start), to_naive_utc(end)


def local_date_of(value: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """Calendar date of a stored (naive UTC) timestamp in the business timezone."""
    tz = tz or business_tz()
    return as_aware(value).astimezone(tz).date()


def span_days(start: datetime, end: datetime) -> int:
    """Whole days covered by [start, end], partial days rounded up."""
    seconds = (as_aware(end) - as_aware(start)).total_seconds()
    return math.ceil(seconds / timedelta(days=1).total_seconds())


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (halves go towards +infinity)."""
    return math.floor(value + 0.5)
