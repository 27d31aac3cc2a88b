"""Tests for the notification dispatcher and the ticket event entry point."""

from __future__ import annotations

import logging
import threading

import pytest

from ticket_notifications.application.use_cases.notifications import dispatcher as dispatcher_module
from ticket_notifications.application.use_cases.notifications import (
    NotificationDispatcher,
    broadcast_system_notification,
    build_system_notifications,
    handle_ticket_event,
)
from ticket_notifications.domain.entities import (
    NotificationPreferences,
    NotificationType,
    ResolvedNotification,
    TicketEvent,
    TicketEventType,
)
from ticket_notifications.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationPublisher,
)
from ticket_notifications.infrastructure.repositories import (
    NotificationRepository,
    PreferenceRepository,
)


class RecordingSender:
    def __init__(self, result=True, *, fail_for=()):
        self.calls = []
        self.result = result
        self.fail_for = set(fail_for)
        self._lock = threading.Lock()

    def __call__(self, notification, *args):
        with self._lock:
            self.calls.append((notification, *args))
        if notification.recipient_id in self.fail_for:
            raise RuntimeError("channel down")
        return self.result

    @property
    def recipients(self):
        return sorted(call[0].recipient_id for call in self.calls)


def _assigned(recipient_id: str) -> ResolvedNotification:
    return ResolvedNotification(
        recipient_id=recipient_id,
        message="You have been assigned to ticket: Printer jam",
        notification_type=NotificationType.TICKET_ASSIGNED,
        ticket_id="T-1",
        related_user_id="actor",
        ticket_title="Printer jam",
    )


def _dispatcher(session_factory, **kwargs) -> NotificationDispatcher:
    kwargs.setdefault("mailer", RecordingSender())
    kwargs.setdefault("chat_sender", RecordingSender())
    kwargs.setdefault("publisher", None)
    kwargs.setdefault("chat_enabled", False)
    return NotificationDispatcher(session_factory, **kwargs)


def _rows_for(session_factory, recipient_id):
    session = session_factory()
    try:
        return NotificationRepository(session).list_for_recipient(recipient_id, limit=None)
    finally:
        session.close()


def test_email_opt_out_still_stores_row(session_factory, add_user):
    add_user("U", email="u@example.com")
    session = session_factory()
    PreferenceRepository(session).replace(NotificationPreferences("U", email=False))
    session.close()
    mailer = RecordingSender()
    dispatcher = _dispatcher(session_factory, mailer=mailer)

    report = dispatcher.deliver([_assigned("U")])

    assert len(report.created) == 1
    assert report.mail_attempts == []
    assert mailer.calls == []
    assert len(_rows_for(session_factory, "U")) == 1


def test_default_preferences_mail_ticket_notifications(session_factory, add_user):
    add_user("U", email="u@example.com")
    mailer = RecordingSender()
    dispatcher = _dispatcher(session_factory, mailer=mailer)

    report = dispatcher.deliver([_assigned("U")])

    assert report.mail_attempts == ["U"]
    assert mailer.calls[0][1] == "u@example.com"
    session = session_factory()
    assert PreferenceRepository(session).get("U") is not None
    session.close()


def test_announcements_are_not_mailed_by_default(session_factory, add_user):
    add_user("U", email="u@example.com")
    mailer = RecordingSender()
    dispatcher = _dispatcher(session_factory, mailer=mailer)

    report = dispatcher.deliver(build_system_notifications("Maintenance tonight", ["U"]))

    assert len(report.created) == 1
    assert report.mail_attempts == []


def test_store_failure_for_one_recipient_does_not_block_others(
    session_factory, add_user, monkeypatch, caplog
):
    for user_id in ("X", "Y", "Z"):
        add_user(user_id, email=f"{user_id.lower()}@example.com")

    class FlakyRepository(NotificationRepository):
        def create(self, notification):
            if notification.recipient_id == "X":
                raise RuntimeError("insert rejected")
            return super().create(notification)

    monkeypatch.setattr(dispatcher_module, "NotificationRepository", FlakyRepository)
    mailer = RecordingSender()
    dispatcher = _dispatcher(session_factory, mailer=mailer)

    with caplog.at_level(logging.ERROR):
        report = dispatcher.deliver([_assigned("X"), _assigned("Y"), _assigned("Z")])

    assert report.failed_recipients == ["X"]
    assert sorted(n.recipient_id for n in report.created) == ["Y", "Z"]
    assert _rows_for(session_factory, "Y") and _rows_for(session_factory, "Z")
    assert "Failed to store" in caplog.text
    # Secondary channels still run for the failed recipient.
    assert mailer.recipients == ["X", "Y", "Z"]


def test_mail_failure_does_not_stop_webhook(session_factory, add_user):
    add_user("U", email="u@example.com")
    add_user("actor", name="Alex Agent")
    mailer = RecordingSender(fail_for={"U"})
    chat = RecordingSender()
    dispatcher = _dispatcher(session_factory, mailer=mailer, chat_sender=chat, chat_enabled=True)

    report = dispatcher.deliver([_assigned("U")])

    assert report.mail_failures == ["U"]
    assert report.webhook_attempts == ["U"]
    assert report.webhook_failures == []
    assert chat.calls[0][0].actor_name == "Alex Agent"
    assert len(_rows_for(session_factory, "U")) == 1


def test_webhook_failure_is_reported(session_factory, add_user):
    add_user("U", email="u@example.com")
    dispatcher = _dispatcher(
        session_factory, chat_sender=RecordingSender(result=False), chat_enabled=True
    )

    report = dispatcher.deliver([_assigned("U")])

    assert report.webhook_failures == ["U"]
    assert report.mail_failures == []


def test_chat_skipped_for_ineligible_types(session_factory, add_user):
    add_user("U", email="u@example.com")
    chat = RecordingSender()
    dispatcher = _dispatcher(session_factory, chat_sender=chat, chat_enabled=True)
    comment = ResolvedNotification(
        recipient_id="U",
        message="New comment on ticket: Printer jam",
        notification_type=NotificationType.COMMENT_ADDED,
        ticket_id="T-1",
    )

    report = dispatcher.deliver([comment])

    assert report.webhook_attempts == []
    assert chat.calls == []


def test_missing_email_address_skips_mail(session_factory, add_user):
    add_user("U", email=None)
    mailer = RecordingSender()
    dispatcher = _dispatcher(session_factory, mailer=mailer)

    report = dispatcher.deliver([_assigned("U")])

    assert report.mail_attempts == []
    assert len(report.created) == 1


def test_stored_rows_are_pushed_to_live_subscribers(session_factory):
    manager = NotificationConnectionManager()
    received = []
    manager.subscribe("U", received.append)
    dispatcher = _dispatcher(session_factory, publisher=NotificationPublisher(manager))

    report = dispatcher.deliver([_assigned("U")])

    assert len(received) == 1
    assert received[0]["change"] == "insert"
    assert received[0]["data"]["id"] == report.created[0].id


def test_dispatch_returns_before_delivery_finishes(session_factory, add_user):
    add_user("U", email="u@example.com")
    release = threading.Event()

    def slow_mailer(notification, email):
        release.wait(timeout=5)
        return True

    dispatcher = _dispatcher(session_factory, mailer=slow_mailer)

    future = dispatcher.dispatch([_assigned("U")])
    assert not future.done()

    release.set()
    report = future.result(timeout=5)
    assert len(report.created) == 1
    dispatcher.shutdown()


def test_dispatch_after_shutdown_raises(session_factory):
    dispatcher = _dispatcher(session_factory)
    dispatcher.shutdown()

    with pytest.raises(RuntimeError):
        dispatcher.dispatch([_assigned("U")])


def test_handle_ticket_event_never_raises(session_factory, caplog):
    dispatcher = _dispatcher(session_factory)
    dispatcher.shutdown()
    event = TicketEvent(
        event_type=TicketEventType.TICKET_CREATED,
        ticket_id="T-1",
        title="Printer jam",
        requester_id="U",
        actor_id="U",
    )

    with caplog.at_level(logging.ERROR):
        result = handle_ticket_event(event, dispatcher=dispatcher, admin_ids=lambda: [])

    assert result is None
    assert "Failed to schedule" in caplog.text


def test_handle_ticket_event_dispatches_resolved_tuples(session_factory):
    dispatcher = _dispatcher(session_factory)
    event = TicketEvent(
        event_type=TicketEventType.TICKET_CREATED,
        ticket_id="T-1",
        title="Printer jam",
        requester_id="U",
        actor_id="U",
    )

    future = handle_ticket_event(event, dispatcher=dispatcher, admin_ids=lambda: ["A1", "A2"])
    report = future.result(timeout=5)
    dispatcher.shutdown()

    assert sorted(n.recipient_id for n in report.created) == ["A1", "A2", "U"]


def test_broadcast_system_notification_rejects_blank_message(session_factory):
    with pytest.raises(ValueError):
        broadcast_system_notification("   ", ["U"], dispatcher=_dispatcher(session_factory))


def test_broadcast_system_notification_deduplicates_recipients(session_factory):
    report = broadcast_system_notification(
        "Maintenance tonight", ["U", "V", "U", ""], dispatcher=_dispatcher(session_factory)
    )

    assert sorted(n.recipient_id for n in report.created) == ["U", "V"]
    assert all(n.notification_type is NotificationType.SYSTEM for n in report.created)


class RecordingPublisher:
    def __init__(self):
        self.stored = {}

    def dispatch(self, notification, change="insert"):
        self.stored.setdefault(notification.recipient_id, threading.Event()).set()

    def wait_for(self, recipient_id, timeout):
        return self.stored.setdefault(recipient_id, threading.Event()).wait(timeout)


def test_hanging_webhook_does_not_delay_later_rows(session_factory):
    release = threading.Event()
    publisher = RecordingPublisher()

    def hanging_chat(notification):
        if notification.recipient_id == "first":
            release.wait(timeout=10)
        return True

    dispatcher = _dispatcher(
        session_factory, chat_sender=hanging_chat, chat_enabled=True, publisher=publisher
    )
    try:
        first = dispatcher.dispatch([_assigned("first")])
        assert publisher.wait_for("first", timeout=5)

        second = dispatcher.dispatch([_assigned("second")])

        assert publisher.wait_for("second", timeout=5)
        assert len(_rows_for(session_factory, "second")) == 1
        assert not first.done()
    finally:
        release.set()
    assert len(first.result(timeout=5).webhook_attempts) == 1
    assert len(second.result(timeout=5).created) == 1
    dispatcher.shutdown()


def test_deliver_stores_every_row_before_relaying(session_factory):
    publisher = RecordingPublisher()
    seen_at_relay = []

    def chat(notification):
        seen_at_relay.append(sorted(publisher.stored))
        return True

    dispatcher = _dispatcher(
        session_factory, chat_sender=chat, chat_enabled=True, publisher=publisher
    )

    dispatcher.deliver([_assigned("X"), _assigned("Y"), _assigned("Z")])

    assert seen_at_relay == [["X", "Y", "Z"]] * 3
