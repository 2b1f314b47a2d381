"""
Reminder polling and notification delivery.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Set, Tuple

from lunacal.config import settings
from lunacal.errors import CalendarError, ValidationError
from lunacal.schemas.event import Event
from lunacal.schemas.reminder import Reminder, ReminderCreate, ReminderType
from lunacal.services.notifications import Notifier, Permission
from lunacal.services.storage import StorageClient

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "📅 日历提醒"
DEFAULT_BODY = "您有一个即将开始的事件"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SchedulerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    CHECKING = "checking"


class ReminderScheduler:
    """
    Polls the storage service for due reminders and shows a notification
    for each of them.

    Polling runs only while checking is enabled and notification permission
    is granted. Entering that state checks once immediately and then once
    per ``interval`` seconds; leaving it cancels the timer task.
    """

    def __init__(
        self,
        client: StorageClient,
        notifier: Notifier,
        store=None,
        interval: Optional[float] = None,
        lookahead_minutes: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.notifier = notifier
        self.store = store
        self.interval = interval if interval is not None else settings.reminder_poll_interval_seconds
        self.lookahead_minutes = (
            lookahead_minutes if lookahead_minutes is not None else settings.reminder_lookahead_minutes
        )
        self.clock = clock

        self.state = SchedulerState.IDLE
        self.enabled = True
        self.permission = notifier.permission()
        self.pending: Tuple[Reminder, ...] = ()
        self.fired: Set[int] = set()
        self._task: Optional[asyncio.Task] = None

    # State transitions

    def _should_poll(self) -> bool:
        return self.enabled and self.permission == Permission.GRANTED

    def _reconcile(self) -> None:
        if self._should_poll():
            if self._task is None or self._task.done():
                self.state = SchedulerState.POLLING
                self._task = asyncio.get_running_loop().create_task(self._run())
        else:
            self._stop()

    def _stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.state = SchedulerState.IDLE

    def start(self) -> None:
        """Start polling if allowed; must be called from a running event loop."""
        self._reconcile()

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        self._reconcile()

    def set_permission(self, permission: Permission) -> None:
        self.permission = Permission(permission)
        self._reconcile()

    async def request_permission(self) -> Permission:
        permission = await self.notifier.request_permission()
        self.set_permission(permission)
        if permission == Permission.DENIED:
            logger.info("Notification permission denied")
        return permission

    async def close(self) -> None:
        task = self._task
        self._stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # Polling

    async def _run(self) -> None:
        while True:
            try:
                await self.check_now()
            except Exception:
                logger.exception("Reminder check failed")
            await asyncio.sleep(self.interval)

    async def check_now(self) -> int:
        """
        One tick: fetch pending reminders and fire the due ones in order.

        Returns the number of notifications shown. A tick that starts while
        another is still running is skipped.
        """
        if self.state == SchedulerState.CHECKING:
            logger.debug("Reminder check already running, skipping tick")
            return 0
        if self.permission != Permission.GRANTED:
            return 0

        self.state = SchedulerState.CHECKING
        try:
            try:
                self.pending = tuple(await self.client.pending_reminders(self.lookahead_minutes))
            except CalendarError as e:
                logger.warning("Failed to fetch pending reminders: %s", e.message)
                return 0
            # sent reminders drop out of the server list
            self.fired &= {r.id for r in self.pending}

            shown = 0
            for reminder in self.pending:
                if reminder.id in self.fired or reminder.reminder_time > self.clock():
                    continue
                await self.notifier.show(NOTIFICATION_TITLE, self._body_for(reminder))
                await self.mark_sent(reminder.id)
                shown += 1
            return shown
        finally:
            if self.state == SchedulerState.CHECKING:
                self.state = SchedulerState.POLLING if self.running else SchedulerState.IDLE

    def _body_for(self, reminder: Reminder) -> str:
        event = self.store.find_event(reminder.event_id) if self.store is not None else None
        if event is None:
            return DEFAULT_BODY
        start = event.start_time.astimezone(self.store.tz).strftime("%H:%M")
        return f"{event.title} ({start})"

    async def mark_sent(self, reminder_id: int) -> None:
        """
        Record a reminder as fired and drop it from the local pending list.

        The remote update is best effort: a failure is logged and the
        reminder still counts as fired, so it is never shown twice.
        """
        if reminder_id in self.fired:
            return
        try:
            await self.client.mark_reminder_sent(reminder_id)
        except CalendarError as e:
            logger.warning("Failed to mark reminder %s as sent: %s", reminder_id, e.message)
        self.fired.add(reminder_id)
        self.pending = tuple(r for r in self.pending if r.id != reminder_id)

    # Creation

    async def create_event_reminder(self, event: Event, minutes_before: int) -> Reminder:
        """Create a notification reminder ``minutes_before`` the event starts."""
        if minutes_before < 0:
            raise ValidationError("minutes_before must not be negative")
        return await self.client.create_reminder(
            ReminderCreate(
                event_id=event.id,
                reminder_time=event.start_time - timedelta(minutes=minutes_before),
                type=ReminderType.NOTIFICATION,
            )
        )
