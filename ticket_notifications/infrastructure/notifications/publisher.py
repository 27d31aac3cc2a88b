"""Utility helpers to push notification rows to live subscribers."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Literal

import anyio
from anyio import from_thread

from ticket_notifications.domain.entities import Notification, NotificationType

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)

ChangeKind = Literal["insert", "update"]


class NotificationPublisher:
    """Serialize notifications and schedule their delivery.

    Publishing works from the event loop, from AnyIO worker threads and from
    plain threads such as the dispatcher's pool, provided the serving loop
    was registered with :meth:`bind_loop`. Without any loop the delivery runs
    inline.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._loop: asyncio.AbstractEventLoop | None = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        """Remember the loop serving websocket subscribers."""

        self._loop = loop

    def dispatch(self, notification: Notification, change: ChangeKind = "insert") -> None:
        """Schedule ``notification`` to be delivered to its recipient."""

        message = {
            "type": "notification",
            "change": change,
            "data": self._serialize(notification),
        }
        self._schedule_send(notification.recipient_id, message)

    def _schedule_send(self, recipient_id: str, message: dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            loop.create_task(self._manager.send_to_user(recipient_id, message))
            return

        if self._loop is not None and self._loop.is_running():
            asyncio.run_coroutine_threadsafe(
                self._manager.send_to_user(recipient_id, message), self._loop
            )
            return

        try:
            from_thread.run(self._manager.send_to_user, recipient_id, message)
        except RuntimeError:
            # Not an AnyIO worker thread and no serving loop: deliver inline.
            anyio.run(self._manager.send_to_user, recipient_id, message)

    @staticmethod
    def _serialize(notification: Notification) -> dict[str, Any]:
        return {
            "id": notification.id,
            "recipient_id": notification.recipient_id,
            "message": notification.message,
            "notification_type": NotificationType(notification.notification_type).value,
            "ticket_id": notification.ticket_id,
            "related_user_id": notification.related_user_id,
            "is_read": notification.is_read,
            "created_at": notification.created_at.isoformat()
            if notification.created_at
            else None,
        }


notification_publisher = NotificationPublisher(notification_manager)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the live channel payload representation for ``notification``."""

    return NotificationPublisher._serialize(notification)


def deserialize_notification(data: dict[str, Any]) -> Notification:
    """Rebuild a :class:`Notification` from a live channel payload."""

    created_at = data.get("created_at")
    return Notification(
        id=data["id"],
        recipient_id=data["recipient_id"],
        message=data["message"],
        notification_type=NotificationType(data["notification_type"]),
        ticket_id=data.get("ticket_id"),
        related_user_id=data.get("related_user_id"),
        is_read=bool(data.get("is_read", False)),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "serialize_notification",
    "deserialize_notification",
]
