"""
Event bucketing by local calendar day, calendar filtering and the
optimistic drag-reschedule flow.
"""
from datetime import date, datetime, tzinfo
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from lunacal.core.dates import ensure_utc, local_timezone, to_local_date
from lunacal.core.optimistic import Optimistic
from lunacal.errors import NotFoundError, ValidationError
from lunacal.schemas.event import Event

PersistFn = Callable[[int, datetime, datetime], Awaitable[Event]]


def visible_events(events: Sequence[Event], selected_calendar_ids: Iterable[int]) -> List[Event]:
    """Events of the selected calendars; an empty selection shows everything."""
    selected = set(selected_calendar_ids)
    if not selected:
        return list(events)
    return [e for e in events if e.calendar_id in selected]


def event_days(event: Event, tz: Optional[tzinfo] = None) -> Tuple[date, date]:
    """First and last local calendar day touched by an event."""
    return to_local_date(event.start_time, tz), to_local_date(event.end_time, tz)


def events_on_date(events: Sequence[Event], day: date, tz: Optional[tzinfo] = None) -> List[Event]:
    """
    Events whose [start day, end day] range contains ``day``, inclusive.

    An event from 18:00 on day N to 08:00 on day N+2 is listed on N, N+1
    and N+2. Recurrence rules are not expanded.
    """
    tz = tz or local_timezone()
    result = []
    for event in events:
        first, last = event_days(event, tz)
        if first <= day <= last:
            result.append(event)
    return result


def events_by_date(
    events: Sequence[Event], days: Iterable[date], tz: Optional[tzinfo] = None
) -> Dict[date, List[Event]]:
    tz = tz or local_timezone()
    spans = [(event, event_days(event, tz)) for event in events]
    return {
        day: [event for event, (first, last) in spans if first <= day <= last]
        for day in days
    }


class Reschedule:
    """
    One drag-reschedule: the optimistic list is available immediately,
    ``confirm`` persists and merges the server copy, ``rollback`` returns the
    list exactly as it was before the drag.
    """

    def __init__(self, events: Sequence[Event], event_id: int, new_start: datetime, new_end: datetime):
        # naive times are read as UTC, as the storage service stores them
        new_start, new_end = ensure_utc(new_start), ensure_utc(new_end)
        if new_end < new_start:
            raise ValidationError("endTime must be later than or equal to startTime")
        original = tuple(events)
        index = next((i for i, e in enumerate(original) if e.id == event_id), None)
        if index is None:
            raise NotFoundError(f"Event {event_id} not found")

        self.event_id = event_id
        self.new_start = new_start
        self.new_end = new_end
        self.original_event = original[index]
        self._update = Optimistic(original)
        moved = self.original_event.model_copy(
            update={"start_time": new_start, "end_time": new_end}
        )
        self._update.apply(original[:index] + (moved,) + original[index + 1:])

    @property
    def original_events(self) -> Tuple[Event, ...]:
        return self._update.original

    @property
    def optimistic_events(self) -> Tuple[Event, ...]:
        return self._update.current

    async def confirm(self, persist: PersistFn) -> Tuple[Event, ...]:
        """
        Persist the new times and swap the server's copy of the event into
        the optimistic list. Errors from ``persist`` propagate; the caller
        is expected to ``rollback``.
        """
        confirmed = await persist(self.event_id, self.new_start, self.new_end)
        merged = tuple(confirmed if e.id == self.event_id else e for e in self._update.current)
        return self._update.commit(merged)

    def rollback(self) -> Tuple[Event, ...]:
        return self._update.rollback()


def reschedule_event(
    events: Sequence[Event], event_id: int, new_start: datetime, new_end: datetime
) -> Reschedule:
    return Reschedule(events, event_id, new_start, new_end)
