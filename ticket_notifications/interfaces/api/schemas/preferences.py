"""Pydantic models describing notification preferences."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationPreferencesUpdate(BaseModel):
    """Full replacement of a user's channel toggles."""

    email: bool
    ticket_updates: bool
    announcements: bool


class NotificationPreferencesRead(NotificationPreferencesUpdate):
    """Stored preferences returned to the client."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    updated_at: datetime | None = None


__all__ = ["NotificationPreferencesRead", "NotificationPreferencesUpdate"]
