"""
Calendar endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update

from lunacal import schemas
from lunacal.database import get_db
from lunacal.models import Calendar, CalendarEvent, Reminder

router = APIRouter()


async def get_calendar_or_404(calendar_id: int, db: AsyncSession) -> Calendar:
    result = await db.execute(select(Calendar).where(Calendar.id == calendar_id))
    calendar = result.scalar_one_or_none()

    if not calendar:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Calendar not found",
        )
    return calendar


async def _clear_default(db: AsyncSession, keep_id: Optional[int] = None):
    """Only one calendar can be the default."""
    query = update(Calendar).where(Calendar.is_default.is_(True))
    if keep_id is not None:
        query = query.where(Calendar.id != keep_id)
    await db.execute(query.values(is_default=False))


@router.get("", response_model=List[schemas.Calendar])
async def list_calendars(db: AsyncSession = Depends(get_db)):
    """List all calendars."""
    result = await db.execute(select(Calendar).order_by(Calendar.id))
    return result.scalars().all()


@router.get("/{calendar_id}", response_model=schemas.Calendar)
async def get_calendar(calendar_id: int, db: AsyncSession = Depends(get_db)):
    """Get a specific calendar."""
    return await get_calendar_or_404(calendar_id, db)


@router.post("", response_model=schemas.Calendar, status_code=status.HTTP_201_CREATED)
async def create_calendar(
    calendar_data: schemas.CalendarCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new calendar."""
    if calendar_data.is_default:
        await _clear_default(db)

    calendar = Calendar(**calendar_data.model_dump())
    db.add(calendar)
    await db.commit()
    await db.refresh(calendar)

    return calendar


@router.put("/{calendar_id}", response_model=schemas.Calendar)
async def update_calendar(
    calendar_id: int,
    calendar_data: schemas.CalendarUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a calendar."""
    calendar = await get_calendar_or_404(calendar_id, db)

    update_data = calendar_data.model_dump(exclude_unset=True)
    if update_data.get("is_default"):
        await _clear_default(db, keep_id=calendar_id)
    for field, value in update_data.items():
        setattr(calendar, field, value)

    await db.commit()
    await db.refresh(calendar)

    return calendar


@router.delete("/{calendar_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calendar(calendar_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a calendar together with its events and their reminders."""
    await get_calendar_or_404(calendar_id, db)

    event_ids = select(CalendarEvent.id).where(CalendarEvent.calendar_id == calendar_id)
    await db.execute(delete(Reminder).where(Reminder.event_id.in_(event_ids)))
    await db.execute(delete(CalendarEvent).where(CalendarEvent.calendar_id == calendar_id))
    await db.execute(delete(Calendar).where(Calendar.id == calendar_id))
    await db.commit()
