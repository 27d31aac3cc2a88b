from .notification import MarkAllReadResult, NotificationRead, UnreadCountRead
from .preferences import NotificationPreferencesRead, NotificationPreferencesUpdate
from .ticket_event import TicketEventCreate

__all__ = [
    "MarkAllReadResult",
    "NotificationRead",
    "UnreadCountRead",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "TicketEventCreate",
]
