"""
Error taxonomy shared by the core, the storage client and the server.

Responses from the storage service are decoded exactly once, at the client
boundary, into an ``ApiResult`` (``Ok`` or ``Err``) and from there into one
of the typed errors below.
"""
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class CalendarError(Exception):
    """Base class for every error raised by lunacal."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(CalendarError):
    """Input rejected before (or by) storage: bad times, empty title, bad color."""


class NotFoundError(CalendarError):
    """Target entity does not exist."""


class ConflictError(CalendarError):
    """Another update of the same entity is still in flight."""


class TransientNetworkError(CalendarError):
    """Network failure or server-side error; the operation may be retried."""


class OutOfRangeError(CalendarError, ValueError):
    """Date lies outside the range covered by the lunisolar tables."""


class PermissionDeniedError(CalendarError):
    """Notification permission was denied or revoked."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: CalendarError

    def unwrap(self) -> Any:
        raise self.error


ApiResult = Union[Ok[T], Err]


def error_for_status(status_code: int, message: str) -> CalendarError:
    """Map an HTTP status code onto the error taxonomy."""
    if status_code in (400, 422):
        return ValidationError(message, status_code)
    if status_code == 404:
        return NotFoundError(message, status_code)
    if status_code == 409:
        return ConflictError(message, status_code)
    if status_code in (401, 403):
        return PermissionDeniedError(message, status_code)
    return TransientNetworkError(message, status_code)
