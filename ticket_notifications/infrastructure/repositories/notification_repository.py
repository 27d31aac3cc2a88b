"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from ticket_notifications.domain.entities import Notification, NotificationType
from ticket_notifications.domain.exceptions import NotificationNotFoundError
from ticket_notifications.infrastructure.models import NotificationModel
from ticket_notifications.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide persistence operations for :class:`Notification` objects.

    Rows are append-only except for the ``is_read`` flag, which only ever
    moves from ``False`` to ``True``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel(
            recipient_id=notification.recipient_id,
            message=notification.message,
            notification_type=NotificationType(notification.notification_type).value,
            ticket_id=notification.ticket_id,
            related_user_id=notification.related_user_id,
            is_read=False,
            created_at=ensure_app_naive_datetime(
                notification.created_at or now_in_app_timezone()
            ),
        )
        self.session.add(model)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_recipient(
        self,
        recipient_id: str,
        *,
        limit: int | None = 20,
        cursor: int | None = None,
    ) -> Sequence[Notification]:
        """Return notifications for ``recipient_id`` ordered newest first.

        ``cursor`` is the id of the oldest notification the caller already
        holds; only rows strictly older than it are returned.
        """

        query = self.session.query(NotificationModel).filter(
            NotificationModel.recipient_id == recipient_id
        )
        if cursor is not None:
            anchor = self._get_owned_model(cursor, recipient_id)
            if anchor is None:
                raise ValueError(f"Unknown cursor {cursor}")
            query = query.filter(
                or_(
                    NotificationModel.created_at < anchor.created_at,
                    and_(
                        NotificationModel.created_at == anchor.created_at,
                        NotificationModel.id < anchor.id,
                    ),
                )
            )
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_unread(self, recipient_id: str) -> int:
        count = (
            self.session.query(func.count(NotificationModel.id))
            .filter(NotificationModel.recipient_id == recipient_id)
            .filter(NotificationModel.is_read.is_(False))
            .scalar()
        )
        return int(count or 0)

    def mark_as_read(
        self, notification_id: int, *, recipient_id: str
    ) -> Notification | None:
        """Flag a single notification as read.

        Returns the updated notification when it transitioned from unread to
        read and ``None`` when it was already read. Raises
        :class:`NotificationNotFoundError` when the notification does not
        belong to ``recipient_id``.
        """

        model = self._get_owned_model(notification_id, recipient_id)
        if model is None:
            raise NotificationNotFoundError(notification_id)
        if model.is_read:
            return None
        transitioned = self.mark_many_as_read([notification_id], recipient_id=recipient_id)
        return transitioned[0] if transitioned else None

    def mark_many_as_read(
        self, notification_ids: Iterable[int], *, recipient_id: str
    ) -> list[Notification]:
        """Flag the given notifications as read and return the ones that changed.

        Identifiers belonging to other recipients are ignored.
        """

        ids = [
            notification_id
            for notification_id in dict.fromkeys(notification_ids)
            if notification_id is not None
        ]
        if not ids:
            return []
        models = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.recipient_id == recipient_id,
                NotificationModel.is_read.is_(False),
            )
            .all()
        )
        return self._flag_read(models)

    def mark_all_as_read(self, recipient_id: str) -> list[Notification]:
        """Flag every unread notification of ``recipient_id`` as read."""

        models = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.recipient_id == recipient_id,
                NotificationModel.is_read.is_(False),
            )
            .all()
        )
        return self._flag_read(models)

    def _flag_read(self, models: list[NotificationModel]) -> list[Notification]:
        if not models:
            return []
        ids = [model.id for model in models]
        # is_read only ever moves to True.
        self.session.query(NotificationModel).filter(
            NotificationModel.id.in_(ids),
            NotificationModel.is_read.is_(False),
        ).update({NotificationModel.is_read: True}, synchronize_session=False)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models if model.is_read]

    def _get_owned_model(
        self, notification_id: int, recipient_id: str
    ) -> NotificationModel | None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None or model.recipient_id != recipient_id:
            return None
        return model

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.recipient_id,
            message=model.message,
            notification_type=NotificationType(model.notification_type),
            ticket_id=model.ticket_id,
            related_user_id=model.related_user_id,
            is_read=bool(model.is_read),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository"]
