"""Client-side view of a recipient's notifications kept in sync with the store.

The live channel gives no guarantee for the time a client was away, so the
view backfills from the store every time it (re)connects and merges pushed
rows by id. The unread counter is always derived from the rows it holds.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from sqlalchemy.orm import Session

from ticket_notifications.domain.entities import Notification
from ticket_notifications.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationPublisher,
    Subscription,
    deserialize_notification,
    notification_manager,
    notification_publisher,
)

from .read_state import (
    list_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class NotificationClient(Protocol):
    """Operations a feed needs from the notification store."""

    def fetch_notifications(
        self, recipient_id: str, *, limit: int, cursor: int | None = None
    ) -> Sequence[Notification]: ...

    def mark_as_read(self, recipient_id: str, notification_id: int) -> bool: ...

    def mark_all_as_read(self, recipient_id: str) -> int: ...


class StoreNotificationClient:
    """:class:`NotificationClient` backed directly by the database."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        publisher: NotificationPublisher | None = notification_publisher,
    ) -> None:
        self._session_factory = session_factory
        self._publisher = publisher

    def fetch_notifications(
        self, recipient_id: str, *, limit: int, cursor: int | None = None
    ) -> Sequence[Notification]:
        session = self._session_factory()
        try:
            return list_notifications(
                session, recipient_id=recipient_id, limit=limit, cursor=cursor
            )
        finally:
            session.close()

    def mark_as_read(self, recipient_id: str, notification_id: int) -> bool:
        session = self._session_factory()
        try:
            return mark_notification_as_read(
                session,
                recipient_id=recipient_id,
                notification_id=notification_id,
                publisher=self._publisher,
            )
        finally:
            session.close()

    def mark_all_as_read(self, recipient_id: str) -> int:
        session = self._session_factory()
        try:
            return mark_all_notifications_as_read(
                session, recipient_id=recipient_id, publisher=self._publisher
            )
        finally:
            session.close()


class NotificationFeed:
    """Ordered, deduplicated notification list for one connected recipient."""

    def __init__(
        self,
        recipient_id: str,
        client: NotificationClient,
        *,
        manager: NotificationConnectionManager = notification_manager,
        page_size: int = 50,
    ) -> None:
        self.recipient_id = recipient_id
        self._client = client
        self._manager = manager
        self._page_size = page_size
        self._rows: dict[int, Notification] = {}
        self._subscription: Subscription | None = None
        self._lock = threading.RLock()

    @property
    def connected(self) -> bool:
        return self._subscription is not None

    @property
    def notifications(self) -> list[Notification]:
        with self._lock:
            rows = list(self._rows.values())
        return sorted(
            rows, key=lambda row: (row.created_at or _EPOCH, row.id or 0), reverse=True
        )

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for row in self._rows.values() if not row.is_read)

    def connect(self) -> None:
        """Open the live subscription and backfill from the store.

        The subscription is opened first so nothing published during the
        backfill is lost; duplicates are merged by id.
        """

        if self._subscription is not None:
            return
        self._subscription = self._manager.subscribe(self.recipient_id, self.apply)
        try:
            self.backfill()
        except Exception:
            self.disconnect()
            raise

    def disconnect(self) -> None:
        """Close the live subscription. Safe to call on every exit path."""

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            self._manager.unsubscribe(subscription)

    def __enter__(self) -> "NotificationFeed":
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    def backfill(self) -> int:
        """Fetch every stored notification and merge it into the view."""

        merged = 0
        cursor: int | None = None
        while True:
            page = self._client.fetch_notifications(
                self.recipient_id, limit=self._page_size, cursor=cursor
            )
            for row in page:
                self._merge(row)
            merged += len(page)
            if len(page) < self._page_size:
                return merged
            cursor = page[-1].id

    def apply(self, message: dict[str, Any]) -> None:
        """Merge a row pushed by the live channel."""

        if message.get("type") != "notification":
            return
        row = deserialize_notification(message["data"])
        if row.recipient_id != self.recipient_id:
            return
        self._merge(row)

    def mark_as_read(self, notification_id: int) -> bool:
        """Flip the row locally, then confirm with the store.

        The local flip is kept even when the store call fails; the next
        backfill reconciles the view.
        """

        self._flag_local([notification_id])
        try:
            self._client.mark_as_read(self.recipient_id, notification_id)
        except Exception:
            logger.warning(
                "Could not mark notification %s as read for %s",
                notification_id,
                self.recipient_id,
                exc_info=True,
            )
            return False
        return True

    def mark_all_as_read(self) -> int | None:
        """Flip every local row, then confirm with the store.

        Returns the number of rows the store changed, or ``None`` when the
        store call failed.
        """

        with self._lock:
            ids = [row_id for row_id, row in self._rows.items() if not row.is_read]
        self._flag_local(ids)
        try:
            return self._client.mark_all_as_read(self.recipient_id)
        except Exception:
            logger.warning(
                "Could not mark all notifications as read for %s",
                self.recipient_id,
                exc_info=True,
            )
            return None

    def _flag_local(self, notification_ids: list[int]) -> None:
        with self._lock:
            for notification_id in notification_ids:
                row = self._rows.get(notification_id)
                if row is not None and not row.is_read:
                    self._rows[notification_id] = replace(row, is_read=True)

    def _merge(self, incoming: Notification) -> None:
        if incoming.id is None:
            return
        with self._lock:
            current = self._rows.get(incoming.id)
            if current is not None and current.is_read and not incoming.is_read:
                # is_read never goes back to False; the incoming copy is stale.
                incoming = replace(incoming, is_read=True)
            self._rows[incoming.id] = incoming


__all__ = ["NotificationClient", "NotificationFeed", "StoreNotificationClient"]
