"""Operator-facing notifications.

Collaborator failures and submission outcomes are surfaced here instead of
being raised: the operation is abandoned and the operator may retry by hand.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from safetyguard.config import NotificationsConfig, get_config
from safetyguard.notifications.slack import send_slack_notification

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "INFO": logging.INFO,
    "SUCCESS": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class NotificationLevel(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Bounded in-memory feed of notifications, optionally forwarded to Slack.

    WARNING and ERROR notifications are forwarded when Slack is enabled.
    """

    def __init__(
        self,
        max_items: int = 50,
        settings: NotificationsConfig | None = None,
        sender: Callable[..., object] | None = None,
    ):
        self.items: deque[Notification] = deque(maxlen=max_items)
        self.settings = settings or get_config().notifications
        self._sender = sender or send_slack_notification

    async def publish(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self.items.append(notification)
        logger.log(_LOG_LEVELS[level.value], "notification level=%s message=%s", level.value, message)

        if self.settings.enabled and level in (NotificationLevel.WARNING, NotificationLevel.ERROR):
            await self._sender(f"[{level.value}] {message}", settings=self.settings)
        return notification

    async def info(self, message: str) -> Notification:
        return await self.publish(NotificationLevel.INFO, message)

    async def success(self, message: str) -> Notification:
        return await self.publish(NotificationLevel.SUCCESS, message)

    async def warning(self, message: str) -> Notification:
        return await self.publish(NotificationLevel.WARNING, message)

    async def error(self, message: str) -> Notification:
        return await self.publish(NotificationLevel.ERROR, message)

    @property
    def latest(self) -> Notification | None:
        return self.items[-1] if self.items else None

    def clear(self) -> None:
        self.items.clear()
