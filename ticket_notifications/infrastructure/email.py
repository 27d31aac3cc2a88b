"""Utility helpers for sending notification emails via SendGrid."""

from __future__ import annotations

import json
import logging
from html import escape
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from ticket_notifications.config import get_settings
from ticket_notifications.domain.entities import NotificationType, ResolvedNotification

logger = logging.getLogger(__name__)

_SUBJECT_LABELS: dict[NotificationType, str] = {
    NotificationType.TICKET_CREATED: "Ticket created",
    NotificationType.TICKET_UPDATED: "Ticket updated",
    NotificationType.TICKET_ASSIGNED: "Ticket assigned",
    NotificationType.TICKET_RESOLVED: "Ticket resolved",
    NotificationType.COMMENT_ADDED: "New comment",
    NotificationType.SYSTEM: "Announcement",
}


def _summarize_error_body(body: Any) -> str | None:
    """Flatten a SendGrid error body into one log-friendly line."""

    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return body

    if isinstance(body, dict):
        messages = []
        for item in body.get("errors") or []:
            if not isinstance(item, dict) or not item.get("message"):
                continue
            field = item.get("field")
            messages.append(f"{item['message']} (field: {field})" if field else str(item["message"]))
        return "; ".join(messages) if messages else json.dumps(body, default=str)
    if isinstance(body, list):
        return "; ".join(str(item) for item in body)
    return None


def _log_delivery_failure(source: Any, *, raised: bool) -> None:
    """Log a failed SendGrid call from either the raised error or the response."""

    status_code = getattr(source, "status_code", None)
    details = _summarize_error_body(getattr(source, "body", None))
    verb = "request failed" if raised else "responded"

    if status_code is None and details is None and raised:
        logger.error("Error sending email via SendGrid: %s", source, exc_info=source)
        return
    parts = [f"SendGrid API {verb}"]
    if status_code is not None:
        parts.append(f"with status {status_code}")
    message = " ".join(parts)
    if details:
        logger.error("%s: %s", message, details)
    else:
        logger.error("%s", message)


def send_email(subject: str, html_content: str, recipient: str) -> bool:
    """Send an email using the configured SendGrid credentials.

    Returns ``False`` instead of raising so callers can treat mail as a
    best-effort channel.
    """

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return False

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # network failures depend on environment
        _log_delivery_failure(exc, raised=True)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_delivery_failure(response, raised=False)
        return False

    return True


def build_ticket_link(ticket_id: str) -> str:
    base_url = get_settings().app_base_url.rstrip("/")
    return f"{base_url}/tickets/{ticket_id}"


def build_notification_subject(notification: ResolvedNotification) -> str:
    """Return the subject line for ``notification``."""

    label = _SUBJECT_LABELS[NotificationType(notification.notification_type)]
    if notification.ticket_title:
        return f"[{label}] {notification.ticket_title}"
    if notification.notification_type is NotificationType.SYSTEM:
        return "Notification"
    return f"[{label}] Ticket {notification.ticket_id}"


def build_notification_html(notification: ResolvedNotification) -> str:
    """Render the HTML body that mirrors ``notification`` by email."""

    parts = [
        "<p>Hello,</p>",
        f"<p>{escape(notification.message)}</p>",
    ]
    if notification.ticket_id:
        link = build_ticket_link(notification.ticket_id)
        parts.append(
            "<p>"
            f"<strong>Ticket ID:</strong> {escape(notification.ticket_id)}<br>"
            f"<strong>Title:</strong> {escape(notification.ticket_title or '')}"
            "</p>"
        )
        parts.append(f'<p><a href="{escape(link)}">View ticket</a></p>')
    parts.append(
        "<p>You can change which emails you receive in your notification settings.</p>"
    )
    return "".join(parts)


def send_notification_email(notification: ResolvedNotification, recipient: str) -> bool:
    """Mirror a resolved notification to ``recipient`` by email."""

    return send_email(
        build_notification_subject(notification),
        build_notification_html(notification),
        recipient,
    )


__all__ = [
    "build_notification_html",
    "build_notification_subject",
    "build_ticket_link",
    "send_email",
    "send_notification_email",
]
