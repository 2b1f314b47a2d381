"""
Pydantic schemas for lunacal.
"""
from lunacal.schemas.calendar import Calendar, CalendarCreate, CalendarUpdate
from lunacal.schemas.event import Event, EventCreate, EventUpdate
from lunacal.schemas.reminder import (
    Reminder,
    ReminderBatchCreate,
    ReminderBatchItem,
    ReminderCreate,
    ReminderType,
    ReminderUpdate,
)
from lunacal.schemas.lunar import (
    GridCell,
    HolidayInfo,
    LunarDayInfo,
    SimpleLunarInfo,
    SolarTerm,
)

__all__ = [
    "Calendar",
    "CalendarCreate",
    "CalendarUpdate",
    "Event",
    "EventCreate",
    "EventUpdate",
    "Reminder",
    "ReminderBatchCreate",
    "ReminderBatchItem",
    "ReminderCreate",
    "ReminderType",
    "ReminderUpdate",
    "GridCell",
    "HolidayInfo",
    "LunarDayInfo",
    "SimpleLunarInfo",
    "SolarTerm",
]
