"""Pydantic model for lifecycle events posted by the ticket layer."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ticket_notifications.domain.entities import TicketEvent, TicketEventType


class TicketEventCreate(BaseModel):
    """Snapshot of a ticket at the moment of a lifecycle event."""

    event_type: TicketEventType
    ticket_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    requester_id: str = Field(..., min_length=1)
    actor_id: str = Field(..., min_length=1)
    status: str | None = None
    priority: str | None = None
    assignee_id: str | None = None
    previous_assignee_id: str | None = None
    comment_text: str | None = None
    actor_name: str | None = None

    def to_entity(self) -> TicketEvent:
        return TicketEvent(**self.model_dump())


__all__ = ["TicketEventCreate"]
