"""
Notification centre - user-visible toasts raised by the narrative layer.

The centre only keeps the list; rendering and auto-dismiss timers belong
to the UI, which may call ``expire()`` each frame instead of running its
own timers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from engine.core.config import NarrativeConfig
from engine.core.events import EventBus, NarrativeEvent

logger = logging.getLogger(__name__)


class NotificationType(Enum):
    """Determines styling and icon."""
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """
    A notification shown to the user.

    Attributes:
        id: Unique identifier
        type: Styling category
        title: Heading
        message: Optional detail text
        created_at: Creation time
        timeout: Auto-dismiss delay in ms (0 = sticky)
    """
    id: str
    type: NotificationType
    title: str
    message: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    timeout: int = 4000

    def is_expired(self, now: datetime) -> bool:
        if self.timeout <= 0:
            return False
        return now >= self.created_at + timedelta(milliseconds=self.timeout)


class NotificationCenter:
    """
    Ordered list of active notifications.

    Usage:
        notifications = NotificationCenter()
        notifications.show_error("Tutorial Error", "Missing tutorial: intro", 8000)
        for note in notifications.active: ...
    """

    def __init__(
        self,
        config: Optional[NarrativeConfig] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or NarrativeConfig()
        self.event_bus = event_bus
        self.clock = clock
        self.notifications: list[Notification] = []
        self._next_id = 0

    @property
    def active(self) -> list[Notification]:
        return list(self.notifications)

    def add(
        self,
        type: NotificationType,
        title: str,
        message: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> str:
        """
        Add a notification.

        Args:
            type: Styling category
            title: Heading
            message: Optional detail text
            timeout: Auto-dismiss in ms; defaults to ``config.default_timeout``

        Returns:
            The notification id
        """
        if timeout is None:
            timeout = self.config.default_timeout

        notification_id = f"notification-{self._next_id}"
        self._next_id += 1

        notification = Notification(
            id=notification_id,
            type=type,
            title=title,
            message=message,
            created_at=self.clock(),
            timeout=timeout,
        )
        self.notifications.append(notification)

        if self.event_bus:
            self.event_bus.publish(NarrativeEvent.NOTIFICATION_POSTED, notification=notification)

        return notification_id

    def remove(self, notification_id: str) -> bool:
        """Remove a notification by id. Returns False if it was not present."""
        for index, notification in enumerate(self.notifications):
            if notification.id == notification_id:
                del self.notifications[index]
                return True
        return False

    def clear(self) -> None:
        self.notifications.clear()

    def expire(self, now: Optional[datetime] = None) -> list[Notification]:
        """Drop notifications whose timeout has elapsed and return them."""
        now = now or self.clock()
        expired = [n for n in self.notifications if n.is_expired(now)]
        if expired:
            self.notifications = [n for n in self.notifications if not n.is_expired(now)]
        return expired

    def find(self, title: str) -> list[Notification]:
        return [n for n in self.notifications if n.title == title]

    # Convenience helpers

    def show_success(self, title: str, message: Optional[str] = None, timeout: Optional[int] = None) -> str:
        return self.add(NotificationType.SUCCESS, title, message, timeout)

    def show_info(self, title: str, message: Optional[str] = None, timeout: Optional[int] = None) -> str:
        return self.add(NotificationType.INFO, title, message, timeout)

    def show_warning(self, title: str, message: Optional[str] = None, timeout: Optional[int] = None) -> str:
        return self.add(NotificationType.WARNING, title, message, timeout)

    def show_error(self, title: str, message: Optional[str] = None, timeout: Optional[int] = None) -> str:
        return self.add(NotificationType.ERROR, title, message, timeout)


class SaveFailureReporter:
    """
    Surfaces persistence failures at most once per session.

    Shared by every component that writes progress, so a full disk
    produces one warning rather than one per mutation.
    """

    TITLE = "Save Failed"

    def __init__(self, notifications: NotificationCenter):
        self.notifications = notifications
        self.failures = 0
        self._warned = False

    @property
    def has_warned(self) -> bool:
        return self._warned

    def report(self, error: Exception) -> None:
        self.failures += 1
        logger.warning(f"Progress could not be saved: {error}")
        if self._warned:
            return
        self._warned = True
        self.notifications.show_warning(
            self.TITLE,
            "Your progress could not be saved. Play continues, but progress may be lost on reload.",
            self.notifications.config.warning_timeout,
        )
