"""Domain entities representing in-app notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    """Kinds of notification the ticket lifecycle can produce."""

    TICKET_CREATED = "ticket_created"
    TICKET_UPDATED = "ticket_updated"
    TICKET_ASSIGNED = "ticket_assigned"
    TICKET_RESOLVED = "ticket_resolved"
    COMMENT_ADDED = "comment_added"
    SYSTEM = "system"


@dataclass(frozen=True)
class ResolvedNotification:
    """A single ``(recipient, message, type)`` tuple produced by resolution."""

    recipient_id: str
    message: str
    notification_type: NotificationType
    ticket_id: str | None = None
    related_user_id: str | None = None
    ticket_title: str | None = None
    actor_name: str | None = None

    def dedup_key(self) -> tuple[str, str, NotificationType]:
        return (self.recipient_id, self.message, self.notification_type)


@dataclass
class Notification:
    """Persisted message addressed to exactly one recipient."""

    id: int | None
    recipient_id: str
    message: str
    notification_type: NotificationType
    ticket_id: str | None = None
    related_user_id: str | None = None
    is_read: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_resolved(
        cls, resolved: ResolvedNotification, *, created_at: datetime | None = None
    ) -> "Notification":
        """Build an unsaved notification from a resolved tuple."""

        return cls(
            id=None,
            recipient_id=resolved.recipient_id,
            message=resolved.message,
            notification_type=resolved.notification_type,
            ticket_id=resolved.ticket_id,
            related_user_id=resolved.related_user_id,
            is_read=False,
            created_at=created_at,
        )


__all__ = ["Notification", "NotificationType", "ResolvedNotification"]
