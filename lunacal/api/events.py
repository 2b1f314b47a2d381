"""
Event endpoints.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_, or_

from lunacal import schemas
from lunacal.api.calendars import get_calendar_or_404
from lunacal.core.dates import day_bounds, to_naive_utc
from lunacal.database import get_db
from lunacal.models import CalendarEvent, Reminder

router = APIRouter()

DATETIME_FIELDS = ("start_time", "end_time", "recurrence_end_date")


async def get_event_or_404(event_id: int, db: AsyncSession) -> CalendarEvent:
    result = await db.execute(select(CalendarEvent).where(CalendarEvent.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


def _naive_fields(data: dict) -> dict:
    for field in DATETIME_FIELDS:
        if field in data:
            data[field] = to_naive_utc(data[field])
    return data


@router.get("", response_model=List[schemas.Event])
async def list_events(
    calendar_id: Optional[int] = Query(None, alias="calendarId"),
    start_date: Optional[date] = Query(None, alias="startDate", description="First local day (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Last local day (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """
    List events, optionally limited to one calendar and a range of days.

    With both dates given, an event is returned when it overlaps the range
    (both ends inclusive, in local calendar days), or when it is recurring,
    starts before the range ends and its series has not ended before the
    range starts.
    """
    query = select(CalendarEvent)

    if calendar_id is not None:
        query = query.where(CalendarEvent.calendar_id == calendar_id)

    range_start = to_naive_utc(day_bounds(start_date)[0]) if start_date else None
    range_end = to_naive_utc(day_bounds(end_date)[1]) if end_date else None

    if range_start and range_end:
        if range_end < range_start:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="endDate must not be before startDate",
            )
        query = query.where(
            or_(
                and_(
                    CalendarEvent.start_time <= range_end,
                    CalendarEvent.end_time >= range_start,
                ),
                and_(
                    CalendarEvent.recurrence_rule.is_not(None),
                    CalendarEvent.start_time <= range_end,
                    or_(
                        CalendarEvent.recurrence_end_date.is_(None),
                        CalendarEvent.recurrence_end_date >= range_start,
                    ),
                ),
            )
        )
    elif range_start:
        query = query.where(CalendarEvent.end_time >= range_start)
    elif range_end:
        query = query.where(CalendarEvent.start_time <= range_end)

    result = await db.execute(query.order_by(CalendarEvent.start_time, CalendarEvent.id))
    return result.scalars().all()


@router.get("/{event_id}", response_model=schemas.Event)
async def get_event(event_id: int, db: AsyncSession = Depends(get_db)):
    """Get a specific event."""
    return await get_event_or_404(event_id, db)


@router.post("", response_model=schemas.Event, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: schemas.EventCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new event in an existing calendar."""
    await get_calendar_or_404(event_data.calendar_id, db)

    event = CalendarEvent(**_naive_fields(event_data.model_dump()))
    db.add(event)
    await db.commit()
    await db.refresh(event)

    return event


@router.put("/{event_id}", response_model=schemas.Event)
async def update_event(
    event_id: int,
    event_data: schemas.EventUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update an event. Fields left out of the body are unchanged."""
    event = await get_event_or_404(event_id, db)

    update_data = _naive_fields(event_data.model_dump(exclude_unset=True))
    for required in ("calendar_id", "title", "start_time", "end_time", "is_all_day"):
        if required in update_data and update_data[required] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{required} cannot be null",
            )

    if "calendar_id" in update_data:
        await get_calendar_or_404(update_data["calendar_id"], db)

    start_time = update_data.get("start_time", event.start_time)
    end_time = update_data.get("end_time", event.end_time)
    if end_time < start_time:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="endTime must be later than or equal to startTime",
        )

    for field, value in update_data.items():
        setattr(event, field, value)

    await db.commit()
    await db.refresh(event)

    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: int, db: AsyncSession = Depends(get_db)):
    """Delete an event and its reminders."""
    await get_event_or_404(event_id, db)

    await db.execute(delete(Reminder).where(Reminder.event_id == event_id))
    await db.execute(delete(CalendarEvent).where(CalendarEvent.id == event_id))
    await db.commit()
