"""
Reminder schemas.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import field_validator

from lunacal.core.dates import ensure_utc
from lunacal.schemas.base import CamelModel


class ReminderType(str, Enum):
    NOTIFICATION = "notification"
    EMAIL = "email"


class ReminderCreate(CamelModel):
    event_id: int
    reminder_time: datetime
    type: ReminderType = ReminderType.NOTIFICATION


class ReminderBatchItem(CamelModel):
    reminder_time: datetime
    type: ReminderType = ReminderType.NOTIFICATION


class ReminderBatchCreate(CamelModel):
    """Several reminders for one event."""

    event_id: int
    reminders: List[ReminderBatchItem]


class ReminderUpdate(CamelModel):
    reminder_time: Optional[datetime] = None
    type: Optional[ReminderType] = None
    is_sent: Optional[bool] = None


class Reminder(CamelModel):
    id: int
    event_id: int
    reminder_time: datetime
    type: ReminderType = ReminderType.NOTIFICATION
    is_sent: bool = False
    created_at: Optional[datetime] = None

    @field_validator("reminder_time", "created_at")
    @classmethod
    def attach_utc(cls, value):
        return ensure_utc(value)
