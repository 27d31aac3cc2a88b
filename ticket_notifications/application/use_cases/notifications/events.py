"""Entry point the ticket layer calls when a lifecycle event happens."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from functools import lru_cache
from typing import Iterable

from ticket_notifications.domain.entities import (
    NotificationType,
    ResolvedNotification,
    TicketEvent,
)

from .dispatcher import DispatchReport, NotificationDispatcher
from .resolver import AdminLookup, resolve_recipients

logger = logging.getLogger(__name__)


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the process wide dispatcher."""

    return NotificationDispatcher()


def load_admin_ids() -> list[str]:
    """Return the identifiers of every administrator."""

    from ticket_notifications.infrastructure.database import SessionLocal
    from ticket_notifications.infrastructure.repositories import UserRepository

    session = SessionLocal()
    try:
        return list(UserRepository(session).list_admin_ids())
    finally:
        session.close()


def handle_ticket_event(
    event: TicketEvent,
    *,
    dispatcher: NotificationDispatcher | None = None,
    admin_ids: AdminLookup | None = load_admin_ids,
) -> Future | None:
    """Resolve recipients for ``event`` and hand them to the dispatcher.

    Returns as soon as delivery is scheduled. No error raised here reaches
    the caller: a failure degrades to "notification not delivered", which is
    logged, never to a failed ticket action.
    """

    try:
        notifications = resolve_recipients(event, admin_ids=admin_ids)
    except Exception:
        logger.exception("Failed to resolve recipients for ticket %s", event.ticket_id)
        return None

    if not notifications:
        logger.debug("Ticket event %s produced no notifications", event.event_type)
        return None

    try:
        return (dispatcher or get_notification_dispatcher()).dispatch(notifications)
    except Exception:
        logger.exception(
            "Failed to schedule %s notifications for ticket %s",
            len(notifications),
            event.ticket_id,
        )
        return None


def build_system_notifications(
    message: str, recipient_ids: Iterable[str]
) -> list[ResolvedNotification]:
    """Return one announcement tuple per distinct recipient."""

    return [
        ResolvedNotification(
            recipient_id=recipient_id,
            message=message,
            notification_type=NotificationType.SYSTEM,
        )
        for recipient_id in dict.fromkeys(recipient_ids)
        if recipient_id
    ]


def broadcast_system_notification(
    message: str,
    recipient_ids: Iterable[str],
    *,
    dispatcher: NotificationDispatcher | None = None,
) -> DispatchReport:
    """Deliver a system announcement and wait for the fan-out to finish."""

    message = message.strip()
    if not message:
        raise ValueError("Announcement message must not be empty")
    notifications = build_system_notifications(message, recipient_ids)
    return (dispatcher or get_notification_dispatcher()).deliver(notifications)


__all__ = [
    "broadcast_system_notification",
    "build_system_notifications",
    "get_notification_dispatcher",
    "handle_ticket_event",
    "load_admin_ids",
]
