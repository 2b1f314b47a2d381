import asyncio
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from lunacal.core.dates import ViewMode
from lunacal.errors import TransientNetworkError
from lunacal.schemas import CalendarCreate, EventCreate, EventUpdate
from lunacal.services.storage import StorageClient
from lunacal.services.store import CalendarStore

from conftest import make_event

UTC = timezone.utc
TODAY = date(2025, 12, 25)


def make_store(client, converter=None):
    return CalendarStore(client, converter=converter, tz=UTC, today=lambda: TODAY)


def test_fetch_calendars_selects_all(fake_client):
    store = make_store(fake_client)
    calendars = asyncio.run(store.fetch_calendars())

    assert [c.id for c in calendars] == [1, 2]
    assert store.selected_calendar_ids == {1, 2}
    assert store.loading is False
    assert store.error is None


def test_failed_action_records_error_and_resets_loading(fake_client):
    fake_client.fail_with["list_calendars"] = TransientNetworkError("Network error: boom")
    store = make_store(fake_client)

    asyncio.run(store.fetch_calendars())

    assert store.loading is False
    assert store.error == "Network error: boom"
    assert store.calendars == ()


def test_loading_flag_is_set_while_request_runs(fake_client):
    store = make_store(fake_client)
    seen = []

    original = fake_client.list_events

    async def spying_list_events(*args):
        seen.append(store.loading)
        return await original(*args)

    fake_client.list_events = spying_list_events
    asyncio.run(store.fetch_events())

    assert seen == [True]
    assert store.loading is False


def test_fetch_events_defaults_to_visible_grid(fake_client):
    store = make_store(fake_client)
    ranges = []

    async def list_events(calendar_id=None, start_date=None, end_date=None):
        ranges.append((start_date, end_date))
        return []

    fake_client.list_events = list_events
    asyncio.run(store.fetch_events())

    assert ranges == [(date(2025, 11, 30), date(2026, 1, 10))]


def test_collections_are_replaced_not_mutated(fake_client):
    store = make_store(fake_client)
    asyncio.run(store.fetch_calendars())
    before = store.calendars

    asyncio.run(store.create_calendar(CalendarCreate(name="Travel", color="#0000FF")))

    assert len(before) == 2
    assert len(store.calendars) == 3
    assert store.calendars[-1].id in store.selected_calendar_ids


def test_delete_calendar_drops_its_events(fake_client, sample_events):
    fake_client.events = list(sample_events)
    store = make_store(fake_client)
    asyncio.run(store.fetch_calendars())
    asyncio.run(store.fetch_events())

    assert asyncio.run(store.delete_calendar(1)) is True

    assert [c.id for c in store.calendars] == [2]
    assert store.selected_calendar_ids == {2}
    assert [e.id for e in store.events] == [2]


def test_event_crud(fake_client):
    store = make_store(fake_client)
    start = datetime(2025, 12, 25, 9, tzinfo=UTC)

    created = asyncio.run(
        store.create_event(
            EventCreate(calendar_id=1, title="Dinner", start_time=start, end_time=start + timedelta(hours=2))
        )
    )
    assert store.events == (created,)

    updated = asyncio.run(store.update_event(created.id, EventUpdate(title="Late dinner")))
    assert updated.title == "Late dinner"
    assert store.events[0].title == "Late dinner"

    assert asyncio.run(store.delete_event(created.id)) is True
    assert store.events == ()


def test_toggle_selection_and_visible_events(fake_client, sample_events):
    store = make_store(fake_client)
    store.events = tuple(sample_events)
    store.selected_calendar_ids = frozenset({1, 2})

    store.toggle_calendar_selection(1)
    assert [e.id for e in store.visible_events()] == [2]
    assert [e.id for e in store.events_on(date(2025, 12, 25))] == [2]

    store.toggle_calendar_selection(2)
    # nothing selected means no filter
    assert len(store.visible_events()) == 3

    store.toggle_calendar_selection(1)
    assert store.selected_calendar_ids == {1}


def test_navigation_actions(fake_client):
    store = make_store(fake_client)
    store.select_date(date(2025, 1, 31))

    assert store.go_next() == date(2025, 2, 28)
    store.set_view_mode(ViewMode.WEEK)
    assert store.go_prev() == date(2025, 2, 21)
    store.set_view_mode("day")
    assert store.go_next() == date(2025, 2, 22)
    assert store.go_today() == TODAY
    assert store.display_month == date(2025, 12, 1)
    assert store.next_display_month() == date(2026, 1, 1)
    assert store.prev_display_month() == date(2025, 12, 1)


def test_reschedule_success_uses_server_copy(fake_client, sample_events):
    fake_client.events = list(sample_events)
    store = make_store(fake_client)
    store.events = tuple(sample_events)
    new_start = datetime(2025, 12, 28, 9, tzinfo=UTC)

    assert asyncio.run(store.reschedule_event(2, new_start, new_start)) is True

    moved = store.find_event(2)
    assert moved.start_time == new_start
    assert moved.title.endswith("(saved)")
    assert store.error is None


def test_reschedule_failure_rolls_back(fake_client, sample_events):
    fake_client.fail_with["reschedule_event"] = TransientNetworkError("offline")
    store = make_store(fake_client)
    store.events = tuple(sample_events)
    before = store.events
    optimistic = []

    original = fake_client.reschedule_event

    async def spying_reschedule(*args):
        optimistic.append(store.find_event(2).start_time)
        return await original(*args)

    fake_client.reschedule_event = spying_reschedule
    new_start = datetime(2025, 12, 28, 9, tzinfo=UTC)

    assert asyncio.run(store.reschedule_event(2, new_start, new_start)) is False

    assert optimistic == [new_start]
    assert store.events == before
    assert store.error == "offline"


def test_concurrent_reschedule_of_same_event_is_rejected(fake_client, sample_events):
    fake_client.events = list(sample_events)
    store = make_store(fake_client)
    store.events = tuple(sample_events)

    async def scenario():
        release = asyncio.Event()
        original = fake_client.reschedule_event

        async def slow_reschedule(*args):
            await release.wait()
            return await original(*args)

        fake_client.reschedule_event = slow_reschedule
        start = datetime(2025, 12, 28, 9, tzinfo=UTC)
        first = asyncio.ensure_future(store.reschedule_event(2, start, start))
        await asyncio.sleep(0)
        second = await store.reschedule_event(2, start + timedelta(days=1), start + timedelta(days=1))
        conflict = store.error
        release.set()
        return await first, second, conflict

    first, second, conflict = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert "already being rescheduled" in conflict


def test_reschedule_validation_error_is_recorded(fake_client, sample_events):
    store = make_store(fake_client)
    store.events = tuple(sample_events)
    start = datetime(2025, 12, 28, 9, tzinfo=UTC)

    assert asyncio.run(store.reschedule_event(1, start, start - timedelta(hours=1))) is False
    assert store.events == tuple(sample_events)
    assert "endTime" in store.error


def test_cells_and_lunar_info(fake_client, converter):
    store = make_store(fake_client, converter)

    cells = store.cells()
    assert len(cells) == 42
    assert [c.date for c in cells if c.is_today] == [TODAY]
    assert store.selected_lunar_info().lunar_day_name == "初六"

    store.select_date(date(1800, 1, 1))
    assert store.selected_lunar_info() is None


def test_calendar_colors(fake_client):
    store = make_store(fake_client)
    asyncio.run(store.fetch_calendars())
    assert store.calendar_colors() == {1: "#FF0000", 2: "#00FF00"}


EVENT_JSON = {
    "id": 1,
    "calendarId": 1,
    "title": "Dinner",
    "startTime": "2025-12-25T18:00:00Z",
    "endTime": "2025-12-25T20:00:00Z",
}


def run_with_http_store(handler, scenario):
    async def main():
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = make_store(StorageClient("http://storage.test/api", client=http))
        try:
            return store, await scenario(store)
        finally:
            await http.aclose()

    return asyncio.run(main())


def test_reschedule_rolls_back_when_reply_is_not_json():
    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json=[EVENT_JSON])
        return httpx.Response(200, text="<html>proxy error</html>")

    async def scenario(store):
        await store.fetch_events()
        before = store.events
        moved = await store.reschedule_event(
            1, datetime(2025, 12, 26, 9, tzinfo=UTC), datetime(2025, 12, 26, 10, tzinfo=UTC)
        )
        return before, moved

    store, (before, moved) = run_with_http_store(handler, scenario)

    assert moved is False
    assert store.events is before
    assert store.events[0].start_time == datetime(2025, 12, 25, 18, tzinfo=UTC)
    assert store.error == "Response body is not valid JSON"
    assert store._rescheduling == set()


@pytest.mark.parametrize(
    "response, message",
    [
        (httpx.Response(200, text="<html>proxy error</html>"), "Response body is not valid JSON"),
        (httpx.Response(200, json=[{"name": "Work"}]), "Unexpected Calendar in response"),
    ],
)
def test_malformed_reply_is_recorded_as_error(response, message):
    async def scenario(store):
        return await store.fetch_calendars()

    store, calendars = run_with_http_store(lambda request: response, scenario)

    assert calendars == ()
    assert store.error == message
    assert store.loading is False


def test_unexpected_reschedule_failure_rolls_back_and_propagates(fake_client, sample_events):
    fake_client.events = list(sample_events)
    fake_client.fail_with["reschedule_event"] = RuntimeError("boom")
    store = make_store(fake_client)
    store.events = tuple(sample_events)
    before = store.events
    new_start = datetime(2025, 12, 28, 9, tzinfo=UTC)

    with pytest.raises(RuntimeError):
        asyncio.run(store.reschedule_event(2, new_start, new_start + timedelta(hours=1)))

    assert store.events is before
    assert store._rescheduling == set()
