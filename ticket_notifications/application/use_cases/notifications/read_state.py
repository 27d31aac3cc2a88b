"""Read-side use cases: listing notifications and tracking read state."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.orm import Session

from ticket_notifications.domain.entities import Notification
from ticket_notifications.infrastructure.notifications import (
    NotificationPublisher,
    notification_publisher,
)
from ticket_notifications.infrastructure.repositories import NotificationRepository


def list_notifications(
    session: Session,
    *,
    recipient_id: str,
    limit: int | None = 20,
    cursor: int | None = None,
) -> Sequence[Notification]:
    """Return a page of ``recipient_id``'s notifications, newest first."""

    return NotificationRepository(session).list_for_recipient(
        recipient_id, limit=limit, cursor=cursor
    )


def count_unread_notifications(session: Session, *, recipient_id: str) -> int:
    """Return how many notifications of ``recipient_id`` are still unread."""

    return NotificationRepository(session).count_unread(recipient_id)


def mark_notification_as_read(
    session: Session,
    *,
    recipient_id: str,
    notification_id: int,
    publisher: NotificationPublisher | None = notification_publisher,
) -> bool:
    """Mark one notification as read.

    Idempotent: marking an already read notification succeeds without any
    change. Returns ``True`` only when the row actually transitioned. Raises
    :class:`NotificationNotFoundError` when the notification is not the
    caller's.
    """

    updated = NotificationRepository(session).mark_as_read(
        notification_id, recipient_id=recipient_id
    )
    if updated is None:
        return False
    _publish_updates([updated], publisher)
    return True


def acknowledge_notifications(
    session: Session,
    *,
    recipient_id: str,
    notification_ids: Iterable[int],
    publisher: NotificationPublisher | None = notification_publisher,
) -> int:
    """Mark a batch of the caller's notifications as read, ignoring foreign ids."""

    updated = NotificationRepository(session).mark_many_as_read(
        notification_ids, recipient_id=recipient_id
    )
    _publish_updates(updated, publisher)
    return len(updated)


def mark_all_notifications_as_read(
    session: Session,
    *,
    recipient_id: str,
    publisher: NotificationPublisher | None = notification_publisher,
) -> int:
    """Mark every unread notification of ``recipient_id`` as read.

    Returns the number of rows that changed; zero when nothing was unread.
    """

    updated = NotificationRepository(session).mark_all_as_read(recipient_id)
    _publish_updates(updated, publisher)
    return len(updated)


def _publish_updates(
    notifications: Iterable[Notification], publisher: NotificationPublisher | None
) -> None:
    if publisher is None:
        return
    for notification in notifications:
        publisher.dispatch(notification, "update")


__all__ = [
    "acknowledge_notifications",
    "count_unread_notifications",
    "list_notifications",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
]
