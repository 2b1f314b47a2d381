from datetime import date, datetime, timezone

import pytest

from lunacal.core.lunar import LunisolarConverter
from lunacal.errors import NotFoundError, OutOfRangeError
from lunacal.schemas import Calendar, Event, HolidayInfo, Reminder, SolarTerm
from lunacal.services.lunisolar import LunisolarDate

UTC = timezone.utc


class StubLunisolarSource:
    """Fixed lunisolar data for a handful of days around 2025."""

    LUNAR = {
        date(2025, 1, 28): LunisolarDate(2024, 12, 29),
        date(2025, 1, 29): LunisolarDate(2025, 1, 1),
        date(2025, 3, 21): LunisolarDate(2025, 2, 22),
        date(2025, 7, 25): LunisolarDate(2025, 6, 1, is_leap=True),
        date(2025, 12, 25): LunisolarDate(
            2025, 11, 6, yi=("祭祀", "出行"), ji=("动土",), xiu="氐", xiu_luck="凶"
        ),
        date(2025, 12, 26): LunisolarDate(2025, 11, 7),
    }
    TERMS = {
        2025: [
            SolarTerm(name="小寒", date=date(2025, 1, 5)),
            SolarTerm(name="立春", date=date(2025, 2, 3)),
            SolarTerm(name="惊蛰", date=date(2025, 3, 5)),
            SolarTerm(name="春分", date=date(2025, 3, 20)),
            SolarTerm(name="清明", date=date(2025, 4, 4)),
            SolarTerm(name="大雪", date=date(2025, 12, 7)),
            SolarTerm(name="冬至", date=date(2025, 12, 21)),
        ],
        2026: [SolarTerm(name="小寒", date=date(2026, 1, 5))],
    }
    HOLIDAYS = {
        (2025, 1, 26): HolidayInfo(name="春节", is_work=True),
        (2025, 1, 29): HolidayInfo(name="春节", is_work=False),
    }

    def to_lunisolar(self, day):
        if day.year < 1900 or day.year > 2100:
            raise OutOfRangeError(f"{day} is outside the supported range")
        try:
            return self.LUNAR[day]
        except KeyError:
            return LunisolarDate(day.year, day.month, min(day.day, 29))

    def solar_terms_for_year(self, year):
        if year < 1899 or year > 2101:
            raise OutOfRangeError(f"{year} is outside the supported range")
        return list(self.TERMS.get(year, []))

    def holiday_for(self, year, month, day):
        return self.HOLIDAYS.get((year, month, day))


@pytest.fixture
def stub_source():
    return StubLunisolarSource()


@pytest.fixture
def converter(stub_source):
    return LunisolarConverter(stub_source)


def make_event(event_id, start, end, calendar_id=1, title=None):
    return Event(
        id=event_id,
        calendar_id=calendar_id,
        title=title or f"Event {event_id}",
        start_time=start,
        end_time=end,
    )


@pytest.fixture
def sample_events():
    return [
        make_event(1, datetime(2025, 12, 24, 18, tzinfo=UTC), datetime(2025, 12, 26, 8, tzinfo=UTC)),
        make_event(2, datetime(2025, 12, 25, 9, tzinfo=UTC), datetime(2025, 12, 25, 10, tzinfo=UTC), calendar_id=2),
        make_event(3, datetime(2025, 12, 27, 9, tzinfo=UTC), datetime(2025, 12, 27, 9, tzinfo=UTC)),
    ]


class FakeStorageClient:
    """In-memory stand-in for StorageClient with failure injection."""

    def __init__(self, calendars=(), events=(), reminders=()):
        self.calendars = list(calendars)
        self.events = list(events)
        self.reminders = list(reminders)
        self.fail_with = {}
        self.calls = []
        self.sent = []
        self._next_id = 100

    def _maybe_fail(self, name):
        self.calls.append(name)
        error = self.fail_with.get(name)
        if error is not None:
            raise error

    def _id(self):
        self._next_id += 1
        return self._next_id

    async def list_calendars(self):
        self._maybe_fail("list_calendars")
        return list(self.calendars)

    async def create_calendar(self, data):
        self._maybe_fail("create_calendar")
        calendar = Calendar(id=self._id(), **data.model_dump())
        self.calendars.append(calendar)
        return calendar

    async def update_calendar(self, calendar_id, data):
        self._maybe_fail("update_calendar")
        for i, calendar in enumerate(self.calendars):
            if calendar.id == calendar_id:
                self.calendars[i] = calendar.model_copy(update=data.model_dump(exclude_unset=True))
                return self.calendars[i]
        raise NotFoundError("Calendar not found", 404)

    async def delete_calendar(self, calendar_id):
        self._maybe_fail("delete_calendar")
        self.calendars = [c for c in self.calendars if c.id != calendar_id]

    async def list_events(self, calendar_id=None, start_date=None, end_date=None):
        self._maybe_fail("list_events")
        return list(self.events)

    async def create_event(self, data):
        self._maybe_fail("create_event")
        event = Event(id=self._id(), **data.model_dump())
        self.events.append(event)
        return event

    async def update_event(self, event_id, data):
        self._maybe_fail("update_event")
        for i, event in enumerate(self.events):
            if event.id == event_id:
                self.events[i] = event.model_copy(update=data.model_dump(exclude_unset=True))
                return self.events[i]
        raise NotFoundError("Event not found", 404)

    async def reschedule_event(self, event_id, start_time, end_time):
        self._maybe_fail("reschedule_event")
        for i, event in enumerate(self.events):
            if event.id == event_id:
                self.events[i] = event.model_copy(
                    update={"start_time": start_time, "end_time": end_time, "title": event.title + " (saved)"}
                )
                return self.events[i]
        raise NotFoundError("Event not found", 404)

    async def delete_event(self, event_id):
        self._maybe_fail("delete_event")
        self.events = [e for e in self.events if e.id != event_id]

    async def list_reminders(self, event_id=None, pending=None, start=None, end=None):
        self._maybe_fail("list_reminders")
        return [r for r in self.reminders if event_id is None or r.event_id == event_id]

    async def pending_reminders(self, minutes=None):
        self._maybe_fail("pending_reminders")
        return [r for r in self.reminders if not r.is_sent]

    async def create_reminder(self, data):
        self._maybe_fail("create_reminder")
        reminder = Reminder(id=self._id(), **data.model_dump())
        self.reminders.append(reminder)
        return reminder

    async def mark_reminder_sent(self, reminder_id):
        self._maybe_fail("mark_reminder_sent")
        self.sent.append(reminder_id)
        for i, reminder in enumerate(self.reminders):
            if reminder.id == reminder_id:
                self.reminders[i] = reminder.model_copy(update={"is_sent": True})
                return self.reminders[i]
        raise NotFoundError("Reminder not found", 404)

    async def delete_reminder(self, reminder_id):
        self._maybe_fail("delete_reminder")
        self.reminders = [r for r in self.reminders if r.id != reminder_id]


@pytest.fixture
def fake_client():
    return FakeStorageClient(
        calendars=[
            Calendar(id=1, name="Work", color="#FF0000"),
            Calendar(id=2, name="Home", color="#00FF00", is_default=True),
        ]
    )


def reminder(reminder_id, when, event_id=1, is_sent=False):
    return Reminder(id=reminder_id, event_id=event_id, reminder_time=when, is_sent=is_sent)
