"""
Period navigation (prev / next / today) keyed by view mode.
"""
import calendar
from datetime import date, timedelta, tzinfo
from typing import Optional

from lunacal.core import dates
from lunacal.core.dates import Direction, ViewMode


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length.

    2025-01-31 + 1 month is 2025-02-28, so a next/prev round trip always
    lands back in the starting month (possibly on an earlier day).
    """
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def step(direction: Direction, view_mode: ViewMode, current: date) -> date:
    """Move the selected date one period backwards or forwards."""
    sign = 1 if Direction(direction) == Direction.NEXT else -1
    view_mode = ViewMode(view_mode)
    if view_mode == ViewMode.MONTH:
        return add_months(current, sign)
    if view_mode == ViewMode.WEEK:
        return current + timedelta(days=7 * sign)
    return current + timedelta(days=sign)


def today(tz: Optional[tzinfo] = None) -> date:
    return dates.today(tz)


def step_display_month(direction: Direction, display_month: date) -> date:
    """Mini calendar paging: first day of the previous or next month."""
    sign = 1 if Direction(direction) == Direction.NEXT else -1
    return add_months(display_month.replace(day=1), sign)
