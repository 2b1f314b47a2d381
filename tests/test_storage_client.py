import asyncio
import json
from datetime import date, datetime, timezone

import httpx
import pytest

from lunacal.errors import (
    ConflictError,
    NotFoundError,
    TransientNetworkError,
    ValidationError,
)
from lunacal.schemas import CalendarCreate, EventUpdate, ReminderBatchCreate
from lunacal.services.storage import StorageClient

BASE = "http://storage.test/api"

EVENT = {
    "id": 3,
    "calendarId": 1,
    "title": "Dinner",
    "startTime": "2025-12-25T18:00:00Z",
    "endTime": "2025-12-25T20:00:00Z",
    "isAllDay": False,
}


def make_client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StorageClient(BASE, client=http)


def run(client, call):
    async def scenario():
        try:
            return await call(client)
        finally:
            await client._client.aclose()

    return asyncio.run(scenario())


def test_list_events_sends_camel_case_query():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=[EVENT])

    client = make_client(handler)
    events = run(client, lambda c: c.list_events(1, date(2025, 12, 1), date(2025, 12, 31)))

    assert events[0].title == "Dinner"
    assert events[0].start_time == datetime(2025, 12, 25, 18, tzinfo=timezone.utc)
    params = requests[0].url.params
    assert params["calendarId"] == "1"
    assert params["startDate"] == "2025-12-01"
    assert params["endDate"] == "2025-12-31"


def test_body_uses_camel_case_and_only_set_fields():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        if request.url.path.startswith("/api/calendars"):
            return httpx.Response(201, json={"id": 1, "name": "Work", "color": "#FF0000", "isDefault": True})
        return httpx.Response(200, json=EVENT)

    client = make_client(handler)
    run(client, lambda c: c.update_event(3, EventUpdate(title="Dinner")))
    run(make_client(handler), lambda c: c.create_calendar(CalendarCreate(name="Work", color="#FF0000", is_default=True)))

    assert bodies[0] == {"title": "Dinner"}
    assert bodies[1] == {"name": "Work", "color": "#FF0000", "isDefault": True}


@pytest.mark.parametrize(
    "status_code, error",
    [
        (400, ValidationError),
        (422, ValidationError),
        (404, NotFoundError),
        (409, ConflictError),
        (500, TransientNetworkError),
        (503, TransientNetworkError),
    ],
)
def test_status_codes_map_to_errors(status_code, error):
    client = make_client(lambda request: httpx.Response(status_code, json={"detail": "nope"}))

    with pytest.raises(error) as exc_info:
        run(client, lambda c: c.get_event(3))
    assert exc_info.value.message == "nope"
    assert exc_info.value.status_code == status_code


def test_validation_detail_list_is_flattened():
    detail = [{"loc": ["body", "title"], "msg": "String should have at least 1 character"}]
    client = make_client(lambda request: httpx.Response(422, json={"detail": detail}))

    with pytest.raises(ValidationError) as exc_info:
        run(client, lambda c: c.get_event(3))
    assert "at least 1 character" in exc_info.value.message


def test_transport_error_is_transient():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientNetworkError):
        run(make_client(handler), lambda c: c.list_calendars())


def test_delete_and_mark_sent():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path))
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(
            200,
            json={"id": 9, "eventId": 3, "reminderTime": "2025-12-25T17:45:00Z", "type": "notification", "isSent": True},
        )

    assert run(make_client(handler), lambda c: c.delete_event(3)) is None
    sent = run(make_client(handler), lambda c: c.mark_reminder_sent(9))
    run(make_client(handler), lambda c: c.delete_event_reminders(3))

    assert sent.is_sent is True
    assert seen == [
        ("DELETE", "/api/events/3"),
        ("PUT", "/api/reminders/9/mark-sent"),
        ("DELETE", "/api/reminders/event/3"),
    ]


def test_pending_and_batch():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    run(make_client(handler), lambda c: c.pending_reminders(5))
    batch = ReminderBatchCreate(
        event_id=3,
        reminders=[{"reminderTime": "2025-12-25T17:45:00Z"}, {"reminderTime": "2025-12-25T17:00:00Z"}],
    )
    run(make_client(handler), lambda c: c.create_reminders_batch(batch))

    assert seen[0].url.path == "/api/reminders/pending"
    assert seen[0].url.params["minutes"] == "5"
    body = json.loads(seen[1].content)
    assert body["eventId"] == 3
    assert len(body["reminders"]) == 2


def test_success_body_that_is_not_json_is_transient():
    client = make_client(lambda request: httpx.Response(200, text="<html>proxy error</html>"))

    with pytest.raises(TransientNetworkError) as exc_info:
        run(client, lambda c: c.get_event(3))
    assert exc_info.value.message == "Response body is not valid JSON"


@pytest.mark.parametrize(
    "body, call",
    [
        ({"id": "three", "title": "Dinner"}, lambda c: c.get_event(3)),
        ({"detail": "not a list"}, lambda c: c.list_events()),
        ([{"name": "Work"}], lambda c: c.list_calendars()),
    ],
)
def test_body_that_does_not_fit_the_schema_is_transient(body, call):
    client = make_client(lambda request: httpx.Response(200, json=body))

    with pytest.raises(TransientNetworkError):
        run(client, call)
