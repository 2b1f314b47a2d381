"""
Notification delivery for reminders.
"""
import logging
from enum import Enum
from typing import List, Tuple

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class Notifier:
    """
    Base notification service.

    Subclasses deliver the notification somewhere real (desktop, push,
    email); ``permission`` reflects whether the user allows it.
    """

    def __init__(self, permission: Permission = Permission.DEFAULT):
        self._permission = Permission(permission)

    def permission(self) -> Permission:
        return self._permission

    async def request_permission(self) -> Permission:
        """
        Ask the user for permission.

        Returns:
            The resulting permission. The base implementation grants it
            unless it was explicitly denied before.
        """
        if self._permission == Permission.DEFAULT:
            self._permission = Permission.GRANTED
        return self._permission

    async def show(self, title: str, body: str) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Writes notifications to the log and keeps them for inspection."""

    def __init__(self, permission: Permission = Permission.GRANTED):
        super().__init__(permission)
        self.shown: List[Tuple[str, str]] = []

    async def show(self, title: str, body: str) -> None:
        logger.info("Notification: %s - %s", title, body)
        self.shown.append((title, body))
