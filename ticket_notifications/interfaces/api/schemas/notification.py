"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ticket_notifications.domain.entities import NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient_id: str
    message: str
    notification_type: NotificationType
    ticket_id: str | None = None
    related_user_id: str | None = None
    is_read: bool
    created_at: datetime


class UnreadCountRead(BaseModel):
    """Unread counter derived from the stored rows."""

    unread: int = Field(..., ge=0)


class MarkAllReadResult(BaseModel):
    """Number of notifications that transitioned to read."""

    updated: int = Field(..., ge=0)


__all__ = ["MarkAllReadResult", "NotificationRead", "UnreadCountRead"]
