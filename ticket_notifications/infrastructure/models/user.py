"""SQLAlchemy model for the profile table owned by the ticket layer."""

from sqlalchemy import Column, String

from ticket_notifications.infrastructure.database import Base


class UserModel(Base):
    """Read-only view of the user profiles the ticketing app maintains."""

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=True)
    email = Column(String(120), nullable=True, index=True)
    role = Column(String(32), nullable=False, default="user", index=True)


__all__ = ["UserModel"]
