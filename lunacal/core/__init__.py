"""
Calendar computation core: grids, event buckets, navigation and the
lunisolar annotation engine.
"""
from lunacal.core.dates import Direction, ViewMode
from lunacal.core.grid import build_cells, build_month_grid, build_week_grid
from lunacal.core.buckets import events_on_date, reschedule_event, visible_events
from lunacal.core.navigation import step
from lunacal.core.optimistic import Optimistic


__all__ = [
    "Direction",
    "ViewMode",
    "build_cells",
    "build_month_grid",
    "build_week_grid",
    "events_on_date",
    "reschedule_event",
    "visible_events",
    "step",
    "Optimistic",
]
