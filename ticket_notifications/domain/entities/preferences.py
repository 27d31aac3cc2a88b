"""Domain entity representing per-user notification preferences."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .notification import NotificationType

CHAT_ELIGIBLE_TYPES = frozenset(
    {
        NotificationType.TICKET_CREATED,
        NotificationType.TICKET_ASSIGNED,
        NotificationType.TICKET_RESOLVED,
    }
)


@dataclass
class NotificationPreferences:
    """Toggles deciding which secondary channels may reach a user.

    A stored value always wins over the defaults; a user without stored
    preferences gets :meth:`defaults`, never "everything off".
    """

    user_id: str
    email: bool = True
    ticket_updates: bool = True
    announcements: bool = False
    updated_at: datetime | None = None

    @classmethod
    def defaults(cls, user_id: str) -> "NotificationPreferences":
        """Return the preferences applied to users who never saved any."""

        return cls(user_id=user_id, email=True, ticket_updates=True, announcements=False)

    def allows_email(self, notification_type: NotificationType | str) -> bool:
        """Return ``True`` when a notification of this type may be mailed."""

        if not self.email:
            return False
        if NotificationType(notification_type) is NotificationType.SYSTEM:
            return self.announcements
        return self.ticket_updates

    def allows_chat(self, notification_type: NotificationType | str) -> bool:
        """Return ``True`` when a notification of this type may reach the chat channel."""

        return NotificationType(notification_type) in CHAT_ELIGIBLE_TYPES and self.ticket_updates


__all__ = ["CHAT_ELIGIBLE_TYPES", "NotificationPreferences"]
