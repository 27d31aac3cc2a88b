"""Tests for the SendGrid mail channel."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from ticket_notifications.config import Settings
from ticket_notifications.domain.entities import NotificationType, ResolvedNotification
from ticket_notifications.infrastructure import email as email_module


@pytest.fixture()
def configured(monkeypatch):
    settings = Settings(
        sendgrid_api_key="SG.test-key",
        sendgrid_sender="helpdesk@example.com",
        app_base_url="https://help.example.com/",
    )
    monkeypatch.setattr(email_module, "get_settings", lambda: settings)
    return settings


class FakeSendGridClient:
    sent: list = []
    response = SimpleNamespace(status_code=202, body=b"")
    error: Exception | None = None

    def __init__(self, api_key):
        self.api_key = api_key

    def send(self, message):
        if self.error is not None:
            raise self.error
        type(self).sent.append((self.api_key, message))
        return self.response


@pytest.fixture()
def fake_client(monkeypatch):
    client = type("RecordingClient", (FakeSendGridClient,), {"sent": []})
    monkeypatch.setattr(email_module, "SendGridAPIClient", client)
    return client


def _assigned(**overrides) -> ResolvedNotification:
    values = {
        "recipient_id": "U",
        "message": "You have been assigned to ticket: Printer <jam>",
        "notification_type": NotificationType.TICKET_ASSIGNED,
        "ticket_id": "T-42",
        "ticket_title": "Printer <jam>",
    }
    values.update(overrides)
    return ResolvedNotification(**values)


def test_send_email_uses_configured_credentials(configured, fake_client):
    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is True

    api_key, _ = fake_client.sent[0]
    assert api_key == "SG.test-key"


def test_send_email_skips_without_configuration(monkeypatch, fake_client):
    monkeypatch.setattr(email_module, "get_settings", lambda: Settings())

    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False
    assert fake_client.sent == []


def test_send_email_reports_error_status(configured, fake_client, caplog):
    fake_client.response = SimpleNamespace(
        status_code=400,
        body=b'{"errors": [{"message": "Invalid recipient", "field": "to"}]}',
    )

    with caplog.at_level(logging.ERROR):
        assert email_module.send_email("Subject", "<p>Body</p>", "nobody") is False

    assert "Invalid recipient (field: to)" in caplog.text


def test_send_email_reports_client_exceptions(configured, fake_client, caplog):
    error = RuntimeError("connection reset")
    error.status_code = 503
    fake_client.error = error

    with caplog.at_level(logging.ERROR):
        assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False

    assert "status 503" in caplog.text


def test_subject_carries_type_label_and_title(configured):
    assert email_module.build_notification_subject(_assigned()) == "[Ticket assigned] Printer <jam>"
    assert (
        email_module.build_notification_subject(_assigned(ticket_title=None))
        == "[Ticket assigned] Ticket T-42"
    )


def test_body_escapes_text_and_links_to_ticket(configured):
    html = email_module.build_notification_html(_assigned())

    assert "Printer &lt;jam&gt;" in html
    assert "<jam>" not in html
    assert 'href="https://help.example.com/tickets/T-42"' in html


def test_announcement_body_has_no_ticket_link(configured):
    announcement = ResolvedNotification(
        recipient_id="U",
        message="Maintenance tonight",
        notification_type=NotificationType.SYSTEM,
    )

    assert "/tickets/" not in email_module.build_notification_html(announcement)


def test_send_notification_email_renders_and_sends(configured, monkeypatch):
    calls = []
    monkeypatch.setattr(
        email_module, "send_email", lambda *args: calls.append(args) or True
    )

    assert email_module.send_notification_email(_assigned(), "user@example.com") is True

    subject, html, recipient = calls[0]
    assert subject == "[Ticket assigned] Printer <jam>"
    assert "T-42" in html
    assert recipient == "user@example.com"
