"""Persistence helpers for notification preferences."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ticket_notifications.domain.entities import NotificationPreferences
from ticket_notifications.infrastructure.models import NotificationPreferencesModel
from ticket_notifications.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

logger = logging.getLogger(__name__)


class PreferenceRepository:
    """Provide read and upsert operations for :class:`NotificationPreferences`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationPreferences | None:
        model = self.session.get(NotificationPreferencesModel, user_id)
        return self._to_entity(model) if model else None

    def get_or_create(self, user_id: str) -> NotificationPreferences:
        """Return the stored preferences, persisting the defaults on first read."""

        existing = self.get(user_id)
        if existing is not None:
            return existing

        model = NotificationPreferencesModel()
        self._apply_entity_to_model(model, NotificationPreferences.defaults(user_id))
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created the row first.
            self.session.rollback()
            logger.debug("Preferences for %s created concurrently", user_id)
            concurrent = self.get(user_id)
            if concurrent is None:
                raise
            return concurrent
        self.session.refresh(model)
        return self._to_entity(model)

    def replace(self, preferences: NotificationPreferences) -> NotificationPreferences:
        """Overwrite every toggle of ``preferences.user_id``."""

        model = self.session.get(NotificationPreferencesModel, preferences.user_id)
        if model is None:
            model = NotificationPreferencesModel()
            self.session.add(model)
        self._apply_entity_to_model(model, preferences)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferencesModel, preferences: NotificationPreferences
    ) -> None:
        model.user_id = preferences.user_id
        model.email = bool(preferences.email)
        model.ticket_updates = bool(preferences.ticket_updates)
        model.announcements = bool(preferences.announcements)
        model.updated_at = ensure_app_naive_datetime(now_in_app_timezone())

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        return NotificationPreferences(
            user_id=model.user_id,
            email=bool(model.email),
            ticket_updates=bool(model.ticket_updates),
            announcements=bool(model.announcements),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
