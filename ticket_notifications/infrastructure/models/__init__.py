"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .preferences import NotificationPreferencesModel
from .user import UserModel

__all__ = [
    "NotificationModel",
    "NotificationPreferencesModel",
    "UserModel",
]
