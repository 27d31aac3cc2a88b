"""Live notification channel helpers for the infrastructure layer."""

from .manager import (
    NotificationConnectionManager,
    Subscription,
    SubscriptionCallback,
    notification_manager,
)
from .publisher import (
    NotificationPublisher,
    deserialize_notification,
    notification_publisher,
    serialize_notification,
)

__all__ = [
    "NotificationConnectionManager",
    "Subscription",
    "SubscriptionCallback",
    "notification_manager",
    "NotificationPublisher",
    "notification_publisher",
    "serialize_notification",
    "deserialize_notification",
]
