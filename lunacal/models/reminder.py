"""
Reminder model: a point in time at which an event should be announced.
"""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lunacal.database import Base

if TYPE_CHECKING:
    from lunacal.models.event import CalendarEvent


class Reminder(Base):
    __tablename__ = "reminders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reminder_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), default="notification")  # notification, email
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    event: Mapped["CalendarEvent"] = relationship("CalendarEvent", back_populates="reminders")

    def __repr__(self) -> str:
        return f"<Reminder {self.id} event={self.event_id} at {self.reminder_time}>"
