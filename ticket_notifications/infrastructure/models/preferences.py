"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, String

from ticket_notifications.infrastructure.database import Base


class NotificationPreferencesModel(Base):
    """Database representation of the channel toggles of a user."""

    __tablename__ = "notification_preferences"

    user_id = Column(String(64), primary_key=True)
    email = Column(Boolean, nullable=False, default=True)
    ticket_updates = Column(Boolean, nullable=False, default=True)
    announcements = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, nullable=True)


__all__ = ["NotificationPreferencesModel"]
