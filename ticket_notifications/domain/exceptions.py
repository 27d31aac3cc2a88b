"""Errors raised by the notification subsystem."""


class NotificationNotFoundError(LookupError):
    """Raised when a notification does not exist or belongs to someone else."""

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification with id {notification_id} not found")
        self.notification_id = notification_id


class InvalidTicketEventError(ValueError):
    """Raised when a ticket lifecycle event lacks a required field."""


__all__ = ["InvalidTicketEventError", "NotificationNotFoundError"]
