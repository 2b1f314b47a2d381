"""
Calendar grids derived from the selected date and view mode.
"""
import calendar
from datetime import date, timedelta
from typing import Dict, List, Optional

from lunacal.core.dates import ViewMode, sunday_index
from lunacal.errors import OutOfRangeError
from lunacal.schemas.lunar import GridCell, SimpleLunarInfo

MONTH_GRID_SIZE = 42  # six full weeks
WEEK_LENGTH = 7


def _days_from(start_of: date, back: int, count: int) -> List[date]:
    try:
        start = start_of - timedelta(days=back)
        return [start + timedelta(days=i) for i in range(count)]
    except OverflowError as e:
        raise OutOfRangeError(f"{start_of} is too close to the ends of the calendar for a grid") from e


def build_month_grid(selected: date) -> List[date]:
    """
    42 consecutive days, Sunday first, covering the month of ``selected``.

    Leading days of the previous month pad the first week; days of the next
    month fill whatever remains of the sixth week. Months whose grid would
    run past year 1 or year 9999 raise OutOfRangeError.
    """
    first = selected.replace(day=1)
    return _days_from(first, sunday_index(first), MONTH_GRID_SIZE)


def build_week_grid(selected: date) -> List[date]:
    """Sunday through Saturday of the week containing ``selected``."""
    return _days_from(selected, sunday_index(selected), WEEK_LENGTH)


def build_day_grid(selected: date) -> List[date]:
    return [selected]


def build_grid(selected: date, view_mode: ViewMode) -> List[date]:
    if view_mode == ViewMode.MONTH:
        return build_month_grid(selected)
    if view_mode == ViewMode.WEEK:
        return build_week_grid(selected)
    return build_day_grid(selected)


def build_mini_month(display_month: date) -> List[Optional[date]]:
    """Days of a month preceded by None placeholders up to its first weekday."""
    first = display_month.replace(day=1)
    days_in_month = calendar.monthrange(first.year, first.month)[1]
    padding: List[Optional[date]] = [None] * sunday_index(first)
    return padding + [first.replace(day=d) for d in range(1, days_in_month + 1)]


def _simple_lunar(day: date, converter) -> Optional[SimpleLunarInfo]:
    try:
        return converter.convert_simple(day)
    except OutOfRangeError:
        # Outside the lunisolar tables the cell renders without lunar info
        return None


def month_lunar_map(days: List[date], converter) -> Dict[date, Optional[SimpleLunarInfo]]:
    return {day: _simple_lunar(day, converter) for day in days}


def build_cells(
    selected: date,
    view_mode: ViewMode,
    today: date,
    converter=None,
) -> List[GridCell]:
    """
    Render-ready cells for the current view.

    A cell is in the current view period when it belongs to the selected
    month (month view) or simply appears in the grid (week and day views).
    Month cells carry simple lunar info when a converter is given.
    """
    cells = []
    for day in build_grid(selected, view_mode):
        if view_mode == ViewMode.MONTH:
            in_period = (day.year, day.month) == (selected.year, selected.month)
        else:
            in_period = True
        lunar = None
        if view_mode == ViewMode.MONTH and converter is not None:
            lunar = _simple_lunar(day, converter)
        cells.append(
            GridCell(
                date=day,
                is_current_view_period=in_period,
                is_today=day == today,
                is_selected=day == selected,
                lunar=lunar,
            )
        )
    return cells
