"""Deliver resolved notifications to the store and the secondary channels."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable

from sqlalchemy.orm import Session

from ticket_notifications.config import get_settings
from ticket_notifications.domain.entities import (
    Notification,
    NotificationPreferences,
    ResolvedNotification,
    UserContact,
)
from ticket_notifications.infrastructure.chat_webhook import send_chat_notification
from ticket_notifications.infrastructure.email import send_notification_email
from ticket_notifications.infrastructure.notifications import (
    NotificationPublisher,
    notification_publisher,
)
from ticket_notifications.infrastructure.repositories import (
    NotificationRepository,
    PreferenceRepository,
    UserRepository,
)
from ticket_notifications.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]
Mailer = Callable[[ResolvedNotification, str], bool]
ChatSender = Callable[[ResolvedNotification], bool]


@dataclass
class DispatchReport:
    """Outcome of one fan-out, per channel."""

    created: list[Notification] = field(default_factory=list)
    failed_recipients: list[str] = field(default_factory=list)
    mail_attempts: list[str] = field(default_factory=list)
    mail_failures: list[str] = field(default_factory=list)
    webhook_attempts: list[str] = field(default_factory=list)
    webhook_failures: list[str] = field(default_factory=list)

    def merge(self, other: "DispatchReport") -> None:
        self.created.extend(other.created)
        self.failed_recipients.extend(other.failed_recipients)
        self.mail_attempts.extend(other.mail_attempts)
        self.mail_failures.extend(other.mail_failures)
        self.webhook_attempts.extend(other.webhook_attempts)
        self.webhook_failures.extend(other.webhook_failures)


class NotificationDispatcher:
    """Fan resolved notifications out to every channel, one recipient at a time.

    Delivery runs in two phases on separate executors. The store phase writes
    and publishes every in-app row, one task and one database session per
    tuple; the relay phase then attempts mail and chat. A slow or hanging
    mail or chat provider only ever occupies relay workers, so it never
    delays the in-app rows of this or any later event. Store writes are never
    rolled back or retried because of mail or chat failures, and mail and
    chat are attempted independently of each other.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        mailer: Mailer = send_notification_email,
        chat_sender: ChatSender = send_chat_notification,
        publisher: NotificationPublisher | None = notification_publisher,
        chat_enabled: bool | None = None,
        max_workers: int | None = None,
    ) -> None:
        settings = get_settings()
        if session_factory is None:
            from ticket_notifications.infrastructure.database import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory
        self._mailer = mailer
        self._chat_sender = chat_sender
        self._publisher = publisher
        self._chat_enabled = (
            bool(settings.chat_webhook_url) if chat_enabled is None else chat_enabled
        )
        self._max_workers = max_workers or settings.dispatch_max_workers
        self._store_pool = ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="notification-store"
        )
        self._relay_pool = ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="notification-relay"
        )
        self._lock = threading.Lock()
        self._closed = False

    def dispatch(self, notifications: Iterable[ResolvedNotification]) -> Future:
        """Schedule delivery and return immediately.

        The returned future resolves to a :class:`DispatchReport` once mail
        and chat have been attempted too; callers emitting ticket events are
        not expected to wait on it. In-app rows are stored and published as
        soon as a store worker is free, whatever the relay phase is doing.
        """

        items = list(notifications)
        result: Future = Future()
        with self._lock:
            if self._closed:
                raise RuntimeError("Notification dispatcher has been shut down")
            stored = self._store_pool.submit(self._store_all, items)
        stored.add_done_callback(lambda future: self._start_relay(future, items, result))
        return result

    def deliver(self, notifications: Iterable[ResolvedNotification]) -> DispatchReport:
        """Deliver every notification and wait for both phases to finish."""

        items = list(notifications)
        report = self._store_all(items)
        report.merge(self._relay_all(items))
        self._log_report(report, len(items))
        return report

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        # Store tasks hand over to the relay pool, so it must outlive them.
        self._store_pool.shutdown(wait=wait)
        self._relay_pool.shutdown(wait=wait)

    def _start_relay(
        self, stored: Future, items: list[ResolvedNotification], result: Future
    ) -> None:
        try:
            report = stored.result()
        except Exception as exc:
            result.set_exception(exc)
            return

        def relay() -> DispatchReport:
            report.merge(self._relay_all(items))
            self._log_report(report, len(items))
            return report

        try:
            relayed = self._relay_pool.submit(relay)
        except RuntimeError as exc:
            logger.warning("Relay pool closed; skipping mail and chat for %s tuples", len(items))
            result.set_exception(exc)
            return
        relayed.add_done_callback(lambda future: _copy_outcome(future, result))

    def _store_all(self, items: list[ResolvedNotification]) -> DispatchReport:
        return self._fan_out(self._store_one, items, "notification-fanout")

    def _relay_all(self, items: list[ResolvedNotification]) -> DispatchReport:
        return self._fan_out(self._relay_one, items, "notification-relay-fanout")

    def _fan_out(
        self,
        task: Callable[[ResolvedNotification], DispatchReport],
        items: list[ResolvedNotification],
        prefix: str,
    ) -> DispatchReport:
        report = DispatchReport()
        if not items:
            return report
        workers = min(self._max_workers, len(items))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=prefix) as pool:
            for outcome in pool.map(task, items):
                report.merge(outcome)
        return report

    @staticmethod
    def _log_report(report: DispatchReport, total: int) -> None:
        logger.info(
            "Delivered %s of %s notifications (%s mail, %s chat attempts)",
            len(report.created),
            total,
            len(report.mail_attempts),
            len(report.webhook_attempts),
        )

    def _store_one(self, item: ResolvedNotification) -> DispatchReport:
        outcome = DispatchReport()
        session = self._open_session(item)
        if session is None:
            outcome.failed_recipients.append(item.recipient_id)
            return outcome
        try:
            self._store(session, item, outcome)
        finally:
            session.close()
        return outcome

    def _relay_one(self, item: ResolvedNotification) -> DispatchReport:
        outcome = DispatchReport()
        session = self._open_session(item)
        if session is None:
            return outcome
        try:
            self._relay(session, item, outcome)
        finally:
            session.close()
        return outcome

    def _open_session(self, item: ResolvedNotification) -> Session | None:
        try:
            return self._session_factory()
        except Exception:
            logger.exception("Could not open a session to notify %s", item.recipient_id)
            return None

    def _store(
        self, session: Session, item: ResolvedNotification, outcome: DispatchReport
    ) -> None:
        try:
            saved = NotificationRepository(session).create(
                Notification.from_resolved(item, created_at=now_in_app_timezone())
            )
        except Exception:
            logger.exception(
                "Failed to store %s notification for %s (ticket %s)",
                item.notification_type,
                item.recipient_id,
                item.ticket_id,
            )
            outcome.failed_recipients.append(item.recipient_id)
            return

        outcome.created.append(saved)
        if self._publisher is None:
            return
        try:
            self._publisher.dispatch(saved, "insert")
        except Exception:
            logger.warning(
                "Could not push notification %s to live subscribers", saved.id, exc_info=True
            )

    def _relay(
        self, session: Session, item: ResolvedNotification, outcome: DispatchReport
    ) -> None:
        try:
            preferences = PreferenceRepository(session).get_or_create(item.recipient_id)
        except Exception:
            logger.exception(
                "Could not read preferences of %s; skipping mail and chat", item.recipient_id
            )
            return

        wants_mail = preferences.allows_email(item.notification_type)
        wants_chat = self._chat_enabled and preferences.allows_chat(item.notification_type)
        if not (wants_mail or wants_chat):
            return

        contact = self._lookup(session, item.recipient_id)
        if wants_mail:
            self._send_mail(item, contact, preferences, outcome)
        if wants_chat:
            self._send_chat(session, item, outcome)

    def _send_mail(
        self,
        item: ResolvedNotification,
        contact: UserContact | None,
        preferences: NotificationPreferences,
        outcome: DispatchReport,
    ) -> None:
        if contact is None or not contact.email:
            logger.info(
                "No email address for %s; skipping mail although email=%s",
                item.recipient_id,
                preferences.email,
            )
            return

        outcome.mail_attempts.append(item.recipient_id)
        try:
            sent = self._mailer(item, contact.email)
        except Exception:
            logger.exception("Mail delivery to %s raised", item.recipient_id)
            sent = False
        if not sent:
            logger.warning(
                "Mail for %s notification to %s was not delivered",
                item.notification_type,
                item.recipient_id,
            )
            outcome.mail_failures.append(item.recipient_id)

    def _send_chat(
        self, session: Session, item: ResolvedNotification, outcome: DispatchReport
    ) -> None:
        if not item.actor_name and item.related_user_id:
            actor = self._lookup(session, item.related_user_id)
            if actor is not None:
                item = replace(item, actor_name=actor.display_name)

        outcome.webhook_attempts.append(item.recipient_id)
        try:
            posted = self._chat_sender(item)
        except Exception:
            logger.exception("Chat webhook for %s raised", item.recipient_id)
            posted = False
        if not posted:
            logger.warning(
                "Chat message for %s notification to %s was not posted",
                item.notification_type,
                item.recipient_id,
            )
            outcome.webhook_failures.append(item.recipient_id)

    @staticmethod
    def _lookup(session: Session, user_id: str) -> UserContact | None:
        try:
            return UserRepository(session).get(user_id)
        except Exception:
            logger.exception("Could not look up user %s", user_id)
            session.rollback()
            return None


def _copy_outcome(source: Future, target: Future) -> None:
    try:
        target.set_result(source.result())
    except Exception as exc:
        target.set_exception(exc)


__all__ = ["DispatchReport", "NotificationDispatcher"]
