"""Endpoints to read and replace notification preferences."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ticket_notifications.application.use_cases.preferences import (
    get_notification_preferences,
    update_notification_preferences,
)
from ticket_notifications.infrastructure.database import get_db
from ticket_notifications.interfaces.api.dependencies import get_current_user_id
from ticket_notifications.interfaces.api.schemas import (
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
)

router = APIRouter(prefix="/notifications/preferences", tags=["notifications"])


@router.get("", response_model=NotificationPreferencesRead)
def read_preferences(
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> NotificationPreferencesRead:
    """Return the caller's preferences, creating the defaults when missing."""

    preferences = get_notification_preferences(db, user_id=current_user_id)
    return NotificationPreferencesRead.model_validate(preferences)


@router.put("", response_model=NotificationPreferencesRead)
def replace_preferences(
    preferences_in: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> NotificationPreferencesRead:
    """Overwrite every toggle of the caller's preferences."""

    preferences = update_notification_preferences(
        db,
        user_id=current_user_id,
        email=preferences_in.email,
        ticket_updates=preferences_in.ticket_updates,
        announcements=preferences_in.announcements,
    )
    return NotificationPreferencesRead.model_validate(preferences)
