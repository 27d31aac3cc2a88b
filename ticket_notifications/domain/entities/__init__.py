"""Domain entities exposed by the notification subsystem."""

from .notification import Notification, NotificationType, ResolvedNotification
from .preferences import NotificationPreferences
from .ticket_event import TicketEvent, TicketEventType
from .user import UserContact

__all__ = [
    "Notification",
    "NotificationType",
    "ResolvedNotification",
    "NotificationPreferences",
    "TicketEvent",
    "TicketEventType",
    "UserContact",
]
