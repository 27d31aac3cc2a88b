"""Domain entity describing a ticket lifecycle event."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TicketEventType(str, Enum):
    """Lifecycle transitions emitted by the ticket layer."""

    TICKET_CREATED = "ticket_created"
    TICKET_UPDATED = "ticket_updated"
    COMMENT_ADDED = "comment_added"
    TICKET_RESOLVED = "ticket_resolved"


@dataclass(frozen=True)
class TicketEvent:
    """Immutable snapshot of a ticket at the moment an event happened.

    The snapshot is never re-fetched or mutated while notifications are
    computed, so resolving the same event twice always yields the same
    recipients.
    """

    event_type: TicketEventType
    ticket_id: str
    title: str
    requester_id: str
    actor_id: str
    status: str | None = None
    priority: str | None = None
    assignee_id: str | None = None
    previous_assignee_id: str | None = None
    comment_text: str | None = None
    actor_name: str | None = None

    @property
    def is_reassignment(self) -> bool:
        return bool(self.previous_assignee_id) and (
            self.previous_assignee_id != self.assignee_id
        )


__all__ = ["TicketEvent", "TicketEventType"]
