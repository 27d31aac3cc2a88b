"""Public helpers for resolving, delivering and reading notifications."""

from .dispatcher import DispatchReport, NotificationDispatcher
from .events import (
    broadcast_system_notification,
    build_system_notifications,
    get_notification_dispatcher,
    handle_ticket_event,
    load_admin_ids,
)
from .feed import NotificationClient, NotificationFeed, StoreNotificationClient
from .read_state import (
    acknowledge_notifications,
    count_unread_notifications,
    list_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
)
from .resolver import resolve_recipients

__all__ = [
    "DispatchReport",
    "NotificationDispatcher",
    "broadcast_system_notification",
    "build_system_notifications",
    "get_notification_dispatcher",
    "handle_ticket_event",
    "load_admin_ids",
    "NotificationClient",
    "NotificationFeed",
    "StoreNotificationClient",
    "acknowledge_notifications",
    "count_unread_notifications",
    "list_notifications",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
    "resolve_recipients",
]
