"""
Calendar session state and the user actions that change it.

The store owns the loaded calendars, events and reminders plus the view
state (selected date, view mode, calendar selection). Collections are
tuples and are always replaced whole, never mutated in place, so a reader
holding a reference never observes a half-applied update.
"""
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, tzinfo
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from lunacal.core import buckets, grid, navigation
from lunacal.core.dates import Direction, ViewMode, local_timezone
from lunacal.errors import CalendarError, ConflictError, OutOfRangeError
from lunacal.schemas.calendar import Calendar, CalendarCreate, CalendarUpdate
from lunacal.schemas.event import Event, EventCreate, EventUpdate
from lunacal.schemas.lunar import GridCell, LunarDayInfo
from lunacal.schemas.reminder import Reminder, ReminderCreate
from lunacal.services.storage import StorageClient

logger = logging.getLogger(__name__)


class CalendarStore:
    def __init__(
        self,
        client: StorageClient,
        converter=None,
        tz: Optional[tzinfo] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.client = client
        self.converter = converter
        self.tz = tz or local_timezone()
        self._today = today or (lambda: navigation.today(self.tz))

        self.calendars: Tuple[Calendar, ...] = ()
        self.events: Tuple[Event, ...] = ()
        self.reminders: Tuple[Reminder, ...] = ()
        self.selected_calendar_ids: FrozenSet[int] = frozenset()

        self.selected_date: date = self._today()
        self.view_mode: ViewMode = ViewMode.MONTH
        self.display_month: date = self.selected_date.replace(day=1)

        self.loading = False
        self.error: Optional[str] = None
        self._rescheduling: Set[int] = set()

    @asynccontextmanager
    async def _action(self, description: str):
        """Loading flag and error bookkeeping shared by every remote action."""
        self.loading = True
        self.error = None
        try:
            yield
        except CalendarError as e:
            logger.warning("Failed to %s: %s", description, e.message)
            self.error = e.message
        finally:
            self.loading = False

    # Calendars

    async def fetch_calendars(self) -> Tuple[Calendar, ...]:
        async with self._action("fetch calendars"):
            calendars = tuple(await self.client.list_calendars())
            self.calendars = calendars
            self.selected_calendar_ids = frozenset(c.id for c in calendars)
        return self.calendars

    async def create_calendar(self, data: CalendarCreate) -> Optional[Calendar]:
        created = None
        async with self._action("create calendar"):
            created = await self.client.create_calendar(data)
            self.calendars = self.calendars + (created,)
            self.selected_calendar_ids = self.selected_calendar_ids | {created.id}
        return created

    async def update_calendar(self, calendar_id: int, data: CalendarUpdate) -> Optional[Calendar]:
        updated = None
        async with self._action("update calendar"):
            updated = await self.client.update_calendar(calendar_id, data)
            self.calendars = tuple(
                updated if c.id == calendar_id else c for c in self.calendars
            )
        return updated

    async def delete_calendar(self, calendar_id: int) -> bool:
        deleted = False
        async with self._action("delete calendar"):
            await self.client.delete_calendar(calendar_id)
            removed_events = {e.id for e in self.events if e.calendar_id == calendar_id}
            self.calendars = tuple(c for c in self.calendars if c.id != calendar_id)
            self.selected_calendar_ids = self.selected_calendar_ids - {calendar_id}
            self.events = tuple(e for e in self.events if e.calendar_id != calendar_id)
            self.reminders = tuple(
                r for r in self.reminders if r.event_id not in removed_events
            )
            deleted = True
        return deleted

    def toggle_calendar_selection(self, calendar_id: int) -> FrozenSet[int]:
        if calendar_id in self.selected_calendar_ids:
            self.selected_calendar_ids = self.selected_calendar_ids - {calendar_id}
        else:
            self.selected_calendar_ids = self.selected_calendar_ids | {calendar_id}
        return self.selected_calendar_ids

    # Events

    def visible_range(self) -> Tuple[date, date]:
        days = grid.build_grid(self.selected_date, self.view_mode)
        return days[0], days[-1]

    async def fetch_events(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        calendar_id: Optional[int] = None,
    ) -> Tuple[Event, ...]:
        """Load events, by default those overlapping the visible grid."""
        if start_date is None and end_date is None:
            start_date, end_date = self.visible_range()
        async with self._action("fetch events"):
            self.events = tuple(
                await self.client.list_events(calendar_id, start_date, end_date)
            )
        return self.events

    async def create_event(self, data: EventCreate) -> Optional[Event]:
        created = None
        async with self._action("create event"):
            created = await self.client.create_event(data)
            self.events = self.events + (created,)
        return created

    async def update_event(self, event_id: int, data: EventUpdate) -> Optional[Event]:
        updated = None
        async with self._action("update event"):
            updated = await self.client.update_event(event_id, data)
            self.events = tuple(updated if e.id == event_id else e for e in self.events)
        return updated

    async def delete_event(self, event_id: int) -> bool:
        deleted = False
        async with self._action("delete event"):
            await self.client.delete_event(event_id)
            self.events = tuple(e for e in self.events if e.id != event_id)
            self.reminders = tuple(r for r in self.reminders if r.event_id != event_id)
            deleted = True
        return deleted

    async def reschedule_event(self, event_id: int, new_start: datetime, new_end: datetime) -> bool:
        """
        Drag-reschedule: the new times show up immediately and are rolled
        back to the exact previous list if persisting fails.

        Only one reschedule per event may be in flight; a second one is
        rejected with a ConflictError recorded in ``error``.
        """
        if event_id in self._rescheduling:
            self.error = ConflictError(f"Event {event_id} is already being rescheduled").message
            return False
        try:
            update = buckets.reschedule_event(self.events, event_id, new_start, new_end)
        except CalendarError as e:
            self.error = e.message
            return False

        self._rescheduling.add(event_id)
        self.events = update.optimistic_events
        self.error = None
        try:
            committed = await update.confirm(self.client.reschedule_event)
            confirmed = next(e for e in committed if e.id == event_id)
            # Merge into the latest list so concurrent changes to other events survive
            self.events = tuple(confirmed if e.id == event_id else e for e in self.events)
            return True
        except CalendarError as e:
            logger.warning("Reschedule of event %s failed: %s", event_id, e.message)
            self.events = update.rollback()
            self.error = e.message
            return False
        except Exception:
            self.events = update.rollback()
            raise
        finally:
            self._rescheduling.discard(event_id)

    # Reminders

    async def fetch_reminders(self, event_id: Optional[int] = None) -> Tuple[Reminder, ...]:
        async with self._action("fetch reminders"):
            self.reminders = tuple(await self.client.list_reminders(event_id=event_id))
        return self.reminders

    async def create_reminder(self, data: ReminderCreate) -> Optional[Reminder]:
        created = None
        async with self._action("create reminder"):
            created = await self.client.create_reminder(data)
            self.reminders = self.reminders + (created,)
        return created

    async def delete_reminder(self, reminder_id: int) -> bool:
        deleted = False
        async with self._action("delete reminder"):
            await self.client.delete_reminder(reminder_id)
            self.reminders = tuple(r for r in self.reminders if r.id != reminder_id)
            deleted = True
        return deleted

    def find_event(self, event_id: int) -> Optional[Event]:
        return next((e for e in self.events if e.id == event_id), None)

    # Navigation

    def go_prev(self) -> date:
        self.selected_date = navigation.step(Direction.PREV, self.view_mode, self.selected_date)
        return self.selected_date

    def go_next(self) -> date:
        self.selected_date = navigation.step(Direction.NEXT, self.view_mode, self.selected_date)
        return self.selected_date

    def go_today(self) -> date:
        self.selected_date = self._today()
        self.display_month = self.selected_date.replace(day=1)
        return self.selected_date

    def select_date(self, day: date) -> None:
        self.selected_date = day

    def set_view_mode(self, view_mode: ViewMode) -> None:
        self.view_mode = ViewMode(view_mode)

    def prev_display_month(self) -> date:
        self.display_month = navigation.step_display_month(Direction.PREV, self.display_month)
        return self.display_month

    def next_display_month(self) -> date:
        self.display_month = navigation.step_display_month(Direction.NEXT, self.display_month)
        return self.display_month

    # Derived views

    def visible_events(self) -> List[Event]:
        return buckets.visible_events(self.events, self.selected_calendar_ids)

    def events_on(self, day: date) -> List[Event]:
        return buckets.events_on_date(self.visible_events(), day, self.tz)

    def events_by_date(self) -> Dict[date, List[Event]]:
        days = grid.build_grid(self.selected_date, self.view_mode)
        return buckets.events_by_date(self.visible_events(), days, self.tz)

    def cells(self) -> List[GridCell]:
        return grid.build_cells(self.selected_date, self.view_mode, self._today(), self.converter)

    def selected_lunar_info(self) -> Optional[LunarDayInfo]:
        if self.converter is None:
            return None
        try:
            return self.converter.convert(self.selected_date)
        except OutOfRangeError:
            return None

    def calendar_colors(self) -> Dict[int, str]:
        return {c.id: c.color for c in self.calendars}
