"""
Calendar schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lunacal.core.dates import ensure_utc
from lunacal.schemas.base import CamelModel

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CalendarCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(..., pattern=COLOR_PATTERN)
    is_default: bool = False


class CalendarUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)
    is_default: Optional[bool] = None


class Calendar(CamelModel):
    id: int
    name: str
    color: str
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def attach_utc(cls, value):
        return ensure_utc(value)
