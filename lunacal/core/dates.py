"""
Calendar-day helpers.

Every bucketing and grid computation works on the *local* calendar day of
an instant, never on its UTC day.
"""
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from lunacal.config import settings


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"


class Direction(str, Enum):
    PREV = "prev"
    NEXT = "next"


def local_timezone(name: Optional[str] = None) -> tzinfo:
    """Resolve a timezone name, falling back to settings and then the host zone."""
    name = name or settings.timezone
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


def to_local_date(instant: datetime, tz: Optional[tzinfo] = None) -> date:
    """Truncate an instant to its calendar day in the local timezone.

    Naive datetimes are taken to be local already.
    """
    if instant.tzinfo is None:
        return instant.date()
    return instant.astimezone(tz or local_timezone()).date()


def sunday_index(day: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def day_bounds(day: date, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """First and last instant of a local calendar day, as aware UTC datetimes."""
    tz = tz or local_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz) - timedelta(microseconds=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def today(tz: Optional[tzinfo] = None) -> date:
    return datetime.now(tz or local_timezone()).date()


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to timezone-naive UTC.
    Columns are stored as TIMESTAMP WITHOUT TIME ZONE.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
