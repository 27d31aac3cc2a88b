"""Read access to the user profiles maintained by the ticket layer."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from ticket_notifications.domain.entities import UserContact
from ticket_notifications.infrastructure.models import UserModel


class UserRepository:
    """Look up recipients and administrators without ever writing profiles."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> UserContact | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def list_admin_ids(self) -> Sequence[str]:
        query = (
            self.session.query(UserModel.id)
            .filter(func.lower(UserModel.role) == "admin")
            .order_by(UserModel.id)
        )
        return [row.id for row in query.all()]

    @staticmethod
    def _to_entity(model: UserModel) -> UserContact:
        return UserContact(
            id=model.id,
            name=model.name,
            email=model.email,
            role=model.role,
        )


__all__ = ["UserRepository"]
