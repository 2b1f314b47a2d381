"""
Reminder endpoints.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from lunacal import schemas
from lunacal.api.events import get_event_or_404
from lunacal.config import settings
from lunacal.core.dates import to_naive_utc
from lunacal.database import get_db
from lunacal.models import Reminder

router = APIRouter()


async def get_reminder_or_404(reminder_id: int, db: AsyncSession) -> Reminder:
    result = await db.execute(select(Reminder).where(Reminder.id == reminder_id))
    reminder = result.scalar_one_or_none()

    if not reminder:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reminder not found",
        )
    return reminder


@router.get("", response_model=List[schemas.Reminder])
async def list_reminders(
    event_id: Optional[int] = Query(None, alias="eventId"),
    pending: Optional[bool] = Query(None, description="Only unsent reminders"),
    start: Optional[datetime] = Query(None, alias="from", description="Earliest reminder time"),
    end: Optional[datetime] = Query(None, alias="to", description="Latest reminder time"),
    db: AsyncSession = Depends(get_db),
):
    """List reminders with optional filtering."""
    query = select(Reminder)

    if event_id is not None:
        query = query.where(Reminder.event_id == event_id)

    if pending:
        query = query.where(Reminder.is_sent.is_(False))

    if start:
        query = query.where(Reminder.reminder_time >= to_naive_utc(start))

    if end:
        query = query.where(Reminder.reminder_time <= to_naive_utc(end))

    result = await db.execute(query.order_by(Reminder.reminder_time, Reminder.id))
    return result.scalars().all()


@router.get("/pending", response_model=List[schemas.Reminder])
async def pending_reminders(
    minutes: int = Query(settings.reminder_lookahead_minutes, ge=0, description="Look-ahead window"),
    db: AsyncSession = Depends(get_db),
):
    """
    Unsent reminders due within the next ``minutes``.

    Overdue reminders that were never sent are included, so a client that
    was offline still fires them.
    """
    threshold = datetime.utcnow() + timedelta(minutes=minutes)
    result = await db.execute(
        select(Reminder)
        .where(Reminder.is_sent.is_(False), Reminder.reminder_time <= threshold)
        .order_by(Reminder.reminder_time, Reminder.id)
    )
    return result.scalars().all()


@router.get("/{reminder_id}", response_model=schemas.Reminder)
async def get_reminder(reminder_id: int, db: AsyncSession = Depends(get_db)):
    """Get a specific reminder."""
    return await get_reminder_or_404(reminder_id, db)


@router.post("", response_model=schemas.Reminder, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    reminder_data: schemas.ReminderCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a reminder for an existing event."""
    await get_event_or_404(reminder_data.event_id, db)

    reminder = Reminder(
        event_id=reminder_data.event_id,
        reminder_time=to_naive_utc(reminder_data.reminder_time),
        type=reminder_data.type.value,
    )
    db.add(reminder)
    await db.commit()
    await db.refresh(reminder)

    return reminder


@router.post("/batch", response_model=List[schemas.Reminder], status_code=status.HTTP_201_CREATED)
async def create_reminders_batch(
    batch: schemas.ReminderBatchCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create several reminders for one event."""
    await get_event_or_404(batch.event_id, db)

    reminders = [
        Reminder(
            event_id=batch.event_id,
            reminder_time=to_naive_utc(item.reminder_time),
            type=item.type.value,
        )
        for item in batch.reminders
    ]
    db.add_all(reminders)
    await db.commit()
    for reminder in reminders:
        await db.refresh(reminder)

    return reminders


@router.put("/{reminder_id}", response_model=schemas.Reminder)
async def update_reminder(
    reminder_id: int,
    reminder_data: schemas.ReminderUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a reminder. A sent reminder cannot be marked unsent again."""
    reminder = await get_reminder_or_404(reminder_id, db)

    update_data = reminder_data.model_dump(exclude_unset=True)
    if update_data.get("is_sent") is False and reminder.is_sent:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Reminder has already been sent",
        )
    if "reminder_time" in update_data:
        if update_data["reminder_time"] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="reminderTime cannot be null",
            )
        update_data["reminder_time"] = to_naive_utc(update_data["reminder_time"])
    if update_data.get("type") is not None:
        update_data["type"] = update_data["type"].value

    for field, value in update_data.items():
        if value is not None:
            setattr(reminder, field, value)

    await db.commit()
    await db.refresh(reminder)

    return reminder


@router.put("/{reminder_id}/mark-sent", response_model=schemas.Reminder)
async def mark_reminder_sent(reminder_id: int, db: AsyncSession = Depends(get_db)):
    """Mark a reminder as sent. Marking it again has no effect."""
    reminder = await get_reminder_or_404(reminder_id, db)

    if not reminder.is_sent:
        reminder.is_sent = True
        await db.commit()
        await db.refresh(reminder)

    return reminder


@router.delete("/event/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_reminders(event_id: int, db: AsyncSession = Depends(get_db)):
    """Delete every reminder of an event."""
    await db.execute(delete(Reminder).where(Reminder.event_id == event_id))
    await db.commit()


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(reminder_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a reminder."""
    reminder = await get_reminder_or_404(reminder_id, db)

    await db.delete(reminder)
    await db.commit()
