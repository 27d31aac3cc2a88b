"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .preference_repository import PreferenceRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "PreferenceRepository",
    "UserRepository",
]
