from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from uuid import uuid4

from seatlocker.core.entities.notification import Notification, NotificationKind

logger = logging.getLogger(__name__)


class NotificationQueue:
    """
    Single-slot queue of transient user-facing messages.

    At most one notification is visible; the newest enqueue replaces the
    current one and its pending expiry timer. Expiry runs on the event loop
    (call_later), so it is cooperative rather than exact.
    """

    def __init__(
            self,
            *,
            default_duration_ms: int = 3000,
            loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._default_duration_ms = default_duration_ms
        self._loop = loop
        self._current: Notification | None = None
        self._expiry: asyncio.TimerHandle | None = None

    @property
    def current(self) -> Notification | None:
        return self._current

    def enqueue(
            self,
            message: str,
            kind: NotificationKind = NotificationKind.INFO,
            duration_ms: int | None = None,
    ) -> Notification:
        if duration_ms is None:
            duration_ms = self._default_duration_ms

        self._cancel_expiry()
        notification = Notification(
            notification_id=str(uuid4()),
            message=message,
            kind=NotificationKind(kind),
            duration_ms=duration_ms,
            created_at=datetime.now(timezone.utc),
        )
        self._current = notification

        # duration <= 0 keeps the message until dismissed
        if duration_ms > 0:
            loop = self._loop or asyncio.get_running_loop()
            self._expiry = loop.call_later(duration_ms / 1000, self._expire, notification.notification_id)

        logger.debug("Notification %s shown (%s, %sms)", notification.notification_id, notification.kind.value,
                     duration_ms)
        return notification

    def dismiss(self) -> None:
        self._cancel_expiry()
        if self._current is not None:
            logger.debug("Notification %s dismissed", self._current.notification_id)
        self._current = None

    def _expire(self, notification_id: str) -> None:
        # A replaced notification's timer must never remove its successor.
        if self._current is None or self._current.notification_id != notification_id:
            return
        logger.debug("Notification %s expired", notification_id)
        self._expiry = None
        self._current = None

    def _cancel_expiry(self) -> None:
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None
