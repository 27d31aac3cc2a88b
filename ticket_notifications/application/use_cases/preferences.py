"""Use cases for reading and replacing notification preferences."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ticket_notifications.domain.entities import NotificationPreferences
from ticket_notifications.infrastructure.repositories import PreferenceRepository


def get_notification_preferences(session: Session, *, user_id: str) -> NotificationPreferences:
    """Return the preferences of ``user_id``, creating the defaults on first read."""

    return PreferenceRepository(session).get_or_create(user_id)


def update_notification_preferences(
    session: Session,
    *,
    user_id: str,
    email: bool,
    ticket_updates: bool,
    announcements: bool,
) -> NotificationPreferences:
    """Replace every toggle of ``user_id`` with the provided values."""

    return PreferenceRepository(session).replace(
        NotificationPreferences(
            user_id=user_id,
            email=email,
            ticket_updates=ticket_updates,
            announcements=announcements,
        )
    )


__all__ = ["get_notification_preferences", "update_notification_preferences"]
