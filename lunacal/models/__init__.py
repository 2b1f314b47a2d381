"""
SQLAlchemy models for the lunacal database.
"""
from lunacal.models.calendar import Calendar
from lunacal.models.event import CalendarEvent
from lunacal.models.reminder import Reminder

__all__ = [
    "Calendar",
    "CalendarEvent",
    "Reminder",
]
