"""
Date Utilities Module

Time zone policy: every instant is handled in UTC. Naive datetimes are
interpreted as UTC and plain dates as midnight UTC, so calendar-month
arithmetic is reproducible regardless of the caller's locale.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Union
import calendar

MILLIS_PER_SECOND = 1000

DateLike = Union[datetime, date, int]


def ensure_utc(value: DateLike) -> datetime:
    """
    Normalize a date-like value to a timezone-aware UTC datetime

    Args:
        value: datetime (aware or naive), date, or epoch milliseconds

    Returns:
        Aware datetime in UTC
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, int) and not isinstance(value, bool):
        return from_epoch_millis(value)
    raise ValueError(f"Unsupported date value: {value!r}")


def from_epoch_millis(millis: int) -> datetime:
    """Convert epoch milliseconds (the mobile representation) to UTC datetime"""
    seconds, remainder = divmod(int(millis), MILLIS_PER_SECOND)
    return datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(milliseconds=remainder)


def to_epoch_millis(value: DateLike) -> int:
    """Convert a date-like value to epoch milliseconds"""
    moment = ensure_utc(value)
    delta = moment - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86400 + delta.seconds) * MILLIS_PER_SECOND + delta.microseconds // 1000


def add_months(start: DateLike, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of shorter months"""
    moment = ensure_utc(start)
    month = moment.month - 1 + months
    year = moment.year + month // 12
    month = month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def add_days(start: DateLike, days: int) -> datetime:
    """Add whole days to a date-like value"""
    return ensure_utc(start) + timedelta(days=days)


def days_between(start: DateLike, end: DateLike) -> int:
    """
    Whole days from start to end (negative when end precedes start).

    Partial days are truncated toward zero, matching a difference in
    elapsed 24 hour periods.
    """
    delta = ensure_utc(end) - ensure_utc(start)
    seconds = delta.days * 86400 + delta.seconds
    if seconds >= 0:
        return seconds // 86400
    return -((-seconds) // 86400)


def to_iso(value: DateLike) -> str:
    """ISO-8601 string in UTC"""
    return ensure_utc(value).isoformat()


def from_iso(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime string into UTC"""
    if len(value) == 10:
        return ensure_utc(date.fromisoformat(value))
    return ensure_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))
