"""
HTTP client for the calendar storage service.

Every response is decoded exactly once, in ``_request``, into an
``ApiResult``; the public methods unwrap it so callers only ever see
schema objects or one of the typed ``CalendarError`` subclasses.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
import pydantic

from lunacal.config import settings
from lunacal.errors import ApiResult, Err, Ok, TransientNetworkError, error_for_status
from lunacal.schemas.base import CamelModel
from lunacal.schemas.calendar import Calendar, CalendarCreate, CalendarUpdate
from lunacal.schemas.event import Event, EventCreate, EventUpdate
from lunacal.schemas.reminder import (
    Reminder,
    ReminderBatchCreate,
    ReminderCreate,
    ReminderUpdate,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=CamelModel)


def _payload(model: CamelModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)


def _decode(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a response body, reporting a malformed one as a CalendarError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        logger.warning("Malformed %s in response: %s", model.__name__, e)
        raise TransientNetworkError(f"Unexpected {model.__name__} in response") from e


def _decode_list(model: Type[ModelT], data: Any) -> List[ModelT]:
    if not isinstance(data, list):
        raise TransientNetworkError(f"Expected a list of {model.__name__} in response")
    return [_decode(model, item) for item in data]


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI validation errors
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return str(detail or body)


class StorageClient:
    """
    Async client of the storage REST API.

    Pass an ``httpx.AsyncClient`` to share a connection pool or to plug in a
    mock transport; otherwise one is created and owned by this instance.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.request_timeout
        )

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> ApiResult:
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            return Err(TransientNetworkError(f"Network error: {e}"))

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return Ok(None)
            try:
                return Ok(response.json())
            except ValueError:
                logger.warning("%s %s returned a body that is not JSON", method, url)
                return Err(TransientNetworkError("Response body is not valid JSON"))

        message = _error_message(response)
        logger.info("%s %s -> %s: %s", method, url, response.status_code, message)
        return Err(error_for_status(response.status_code, message))

    # Calendars

    async def list_calendars(self) -> List[Calendar]:
        data = (await self._request("GET", "/calendars")).unwrap()
        return _decode_list(Calendar, data)

    async def get_calendar(self, calendar_id: int) -> Calendar:
        data = (await self._request("GET", f"/calendars/{calendar_id}")).unwrap()
        return _decode(Calendar, data)

    async def create_calendar(self, calendar: CalendarCreate) -> Calendar:
        data = (await self._request("POST", "/calendars", json=_payload(calendar))).unwrap()
        return _decode(Calendar, data)

    async def update_calendar(self, calendar_id: int, update: CalendarUpdate) -> Calendar:
        data = (
            await self._request("PUT", f"/calendars/{calendar_id}", json=_payload(update))
        ).unwrap()
        return _decode(Calendar, data)

    async def delete_calendar(self, calendar_id: int) -> None:
        (await self._request("DELETE", f"/calendars/{calendar_id}")).unwrap()

    # Events

    async def list_events(
        self,
        calendar_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Event]:
        params = {
            "calendarId": calendar_id,
            "startDate": start_date.isoformat() if start_date else None,
            "endDate": end_date.isoformat() if end_date else None,
        }
        data = (await self._request("GET", "/events", params=params)).unwrap()
        return _decode_list(Event, data)

    async def get_event(self, event_id: int) -> Event:
        data = (await self._request("GET", f"/events/{event_id}")).unwrap()
        return _decode(Event, data)

    async def create_event(self, event: EventCreate) -> Event:
        data = (await self._request("POST", "/events", json=_payload(event))).unwrap()
        return _decode(Event, data)

    async def update_event(self, event_id: int, update: EventUpdate) -> Event:
        data = (
            await self._request("PUT", f"/events/{event_id}", json=_payload(update))
        ).unwrap()
        return _decode(Event, data)

    async def reschedule_event(self, event_id: int, start_time: datetime, end_time: datetime) -> Event:
        return await self.update_event(
            event_id, EventUpdate(start_time=start_time, end_time=end_time)
        )

    async def delete_event(self, event_id: int) -> None:
        (await self._request("DELETE", f"/events/{event_id}")).unwrap()

    # Reminders

    async def list_reminders(
        self,
        event_id: Optional[int] = None,
        pending: Optional[bool] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Reminder]:
        params = {
            "eventId": event_id,
            "pending": str(pending).lower() if pending is not None else None,
            "from": start.isoformat() if start else None,
            "to": end.isoformat() if end else None,
        }
        data = (await self._request("GET", "/reminders", params=params)).unwrap()
        return _decode_list(Reminder, data)

    async def pending_reminders(self, minutes: Optional[int] = None) -> List[Reminder]:
        """Unsent reminders due within the next ``minutes``, overdue ones included."""
        if minutes is None:
            minutes = settings.reminder_lookahead_minutes
        data = (
            await self._request("GET", "/reminders/pending", params={"minutes": minutes})
        ).unwrap()
        return _decode_list(Reminder, data)

    async def get_reminder(self, reminder_id: int) -> Reminder:
        data = (await self._request("GET", f"/reminders/{reminder_id}")).unwrap()
        return _decode(Reminder, data)

    async def create_reminder(self, reminder: ReminderCreate) -> Reminder:
        data = (await self._request("POST", "/reminders", json=_payload(reminder))).unwrap()
        return _decode(Reminder, data)

    async def create_reminders_batch(self, batch: ReminderBatchCreate) -> List[Reminder]:
        data = (
            await self._request("POST", "/reminders/batch", json=_payload(batch))
        ).unwrap()
        return _decode_list(Reminder, data)

    async def update_reminder(self, reminder_id: int, update: ReminderUpdate) -> Reminder:
        data = (
            await self._request("PUT", f"/reminders/{reminder_id}", json=_payload(update))
        ).unwrap()
        return _decode(Reminder, data)

    async def mark_reminder_sent(self, reminder_id: int) -> Reminder:
        data = (await self._request("PUT", f"/reminders/{reminder_id}/mark-sent")).unwrap()
        return _decode(Reminder, data)

    async def delete_reminder(self, reminder_id: int) -> None:
        (await self._request("DELETE", f"/reminders/{reminder_id}")).unwrap()

    async def delete_event_reminders(self, event_id: int) -> None:
        (await self._request("DELETE", f"/reminders/event/{event_id}")).unwrap()
