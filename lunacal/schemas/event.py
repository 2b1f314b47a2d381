"""
Calendar event schemas, shared by the storage service and the client core.
"""
from datetime import datetime
from typing import Optional

import icalendar
from pydantic import Field, field_validator, model_validator

from lunacal.core.dates import ensure_utc
from lunacal.schemas.base import CamelModel


def validate_recurrence_rule(rule: Optional[str]) -> Optional[str]:
    """Check an RRULE string (e.g. "FREQ=WEEKLY;BYDAY=MO,WE,FR")."""
    if rule is None or rule == "":
        return None
    try:
        parsed = icalendar.vRecur.from_ical(rule)
    except Exception as e:
        raise ValueError(f"Invalid recurrence rule: {rule}") from e
    if "FREQ" not in parsed:
        raise ValueError(f"Recurrence rule has no FREQ: {rule}")
    return rule


class EventCreate(CamelModel):
    calendar_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_all_day: bool = False
    location: Optional[str] = Field(None, max_length=500)
    recurrence_rule: Optional[str] = None
    recurrence_end_date: Optional[datetime] = None

    @field_validator("recurrence_rule")
    @classmethod
    def check_recurrence_rule(cls, value):
        return validate_recurrence_rule(value)

    @model_validator(mode="after")
    def check_time_order(self):
        if ensure_utc(self.end_time) < ensure_utc(self.start_time):
            raise ValueError("endTime must be later than or equal to startTime")
        return self


class EventUpdate(CamelModel):
    calendar_id: Optional[int] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_all_day: Optional[bool] = None
    location: Optional[str] = Field(None, max_length=500)
    recurrence_rule: Optional[str] = None
    recurrence_end_date: Optional[datetime] = None

    @field_validator("recurrence_rule")
    @classmethod
    def check_recurrence_rule(cls, value):
        return validate_recurrence_rule(value)

    @model_validator(mode="after")
    def check_time_order(self):
        if self.start_time and self.end_time and ensure_utc(self.end_time) < ensure_utc(self.start_time):
            raise ValueError("endTime must be later than or equal to startTime")
        return self


class Event(CamelModel):
    id: int
    calendar_id: int
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_all_day: bool = False
    location: Optional[str] = None
    recurrence_rule: Optional[str] = None
    recurrence_end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(
        "start_time", "end_time", "recurrence_end_date", "created_at", "updated_at"
    )
    @classmethod
    def attach_utc(cls, value):
        return ensure_utc(value)
