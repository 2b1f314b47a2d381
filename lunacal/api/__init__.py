"""
API routers for lunacal.
"""
from lunacal.api import calendars, events, reminders, lunar

__all__ = ["calendars", "events", "reminders", "lunar"]
