"""Mirror ticket notifications to a chat channel through an incoming webhook."""

from __future__ import annotations

import logging

import httpx

from ticket_notifications.config import get_settings
from ticket_notifications.domain.entities import NotificationType, ResolvedNotification

logger = logging.getLogger(__name__)

_EMOJI: dict[NotificationType, str] = {
    NotificationType.TICKET_CREATED: "🎫",
    NotificationType.TICKET_ASSIGNED: "👤",
    NotificationType.TICKET_UPDATED: "🔄",
    NotificationType.TICKET_RESOLVED: "✅",
    NotificationType.COMMENT_ADDED: "💬",
    NotificationType.SYSTEM: "📢",
}

_HEADLINES: dict[NotificationType, str] = {
    NotificationType.TICKET_CREATED: "New Ticket Submitted",
    NotificationType.TICKET_ASSIGNED: "Ticket Assigned",
    NotificationType.TICKET_UPDATED: "Ticket Updated",
    NotificationType.TICKET_RESOLVED: "Ticket Resolved",
    NotificationType.COMMENT_ADDED: "New Comment",
    NotificationType.SYSTEM: "Announcement",
}


def build_webhook_text(notification: ResolvedNotification) -> str:
    """Return the single text payload posted for ``notification``."""

    notification_type = NotificationType(notification.notification_type)
    lines = [f"{_EMOJI[notification_type]} **{_HEADLINES[notification_type]}**", ""]
    if notification.actor_name:
        lines.append(f"👤 By: {notification.actor_name}")
    if notification.ticket_id:
        reference = f"#{notification.ticket_id}"
        if notification.ticket_title:
            reference = f"{reference} {notification.ticket_title}"
        lines.append(f"📝 Ticket: {reference}")
    lines.append(notification.message)
    return "\n".join(lines)


def post_chat_message(text: str, *, client: httpx.Client | None = None) -> bool:
    """Post ``text`` to the configured webhook once.

    Returns ``True`` on a 2xx answer. Missing configuration, transport errors
    and error statuses are logged and reported as ``False``; nothing is
    retried.
    """

    settings = get_settings()
    if not settings.chat_webhook_url:
        logger.debug("Chat webhook URL not configured; skipping chat delivery")
        return False

    owns_client = client is None
    http = client or httpx.Client(timeout=settings.webhook_timeout_seconds)
    try:
        response = http.post(settings.chat_webhook_url, json={"text": text})
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error(
            "Chat webhook responded with status %s: %s",
            exc.response.status_code,
            exc.response.text[:200],
        )
        return False
    except httpx.HTTPError as exc:
        logger.error("Chat webhook request failed: %s", exc)
        return False
    finally:
        if owns_client:
            http.close()
    return True


def send_chat_notification(
    notification: ResolvedNotification, *, client: httpx.Client | None = None
) -> bool:
    """Mirror a resolved notification to the chat channel."""

    return post_chat_message(build_webhook_text(notification), client=client)


__all__ = ["build_webhook_text", "post_chat_message", "send_chat_notification"]
