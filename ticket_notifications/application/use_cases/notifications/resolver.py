"""Compute who must be told about a ticket lifecycle event.

Resolution is pure: it reads only the event snapshot (plus the optional
admin lookup for new tickets) and returns the tuples to deliver without
touching any store.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from ticket_notifications.domain.entities import (
    NotificationType,
    ResolvedNotification,
    TicketEvent,
    TicketEventType,
)
from ticket_notifications.domain.exceptions import InvalidTicketEventError

logger = logging.getLogger(__name__)

AdminLookup = Callable[[], Iterable[str]]

COMMENT_EXCERPT_LENGTH = 100


def resolve_recipients(
    event: TicketEvent, *, admin_ids: AdminLookup | None = None
) -> list[ResolvedNotification]:
    """Return the deduplicated notifications produced by ``event``.

    A malformed event yields an empty list and a warning instead of an
    exception, so that the ticket action that emitted it never fails because
    of notifications.
    """

    try:
        event_type = _validate(event)
    except InvalidTicketEventError as exc:
        logger.warning("Skipping notifications for malformed ticket event: %s", exc)
        return []

    if event_type is TicketEventType.TICKET_CREATED:
        resolved = _resolve_created(event, admin_ids)
    elif event_type is TicketEventType.TICKET_UPDATED:
        resolved = _resolve_updated(event)
    elif event_type is TicketEventType.COMMENT_ADDED:
        resolved = _resolve_comment(event)
    else:
        resolved = _resolve_resolved(event)
    return _deduplicate(resolved)


def _validate(event: TicketEvent) -> TicketEventType:
    try:
        event_type = TicketEventType(event.event_type)
    except ValueError as exc:
        raise InvalidTicketEventError(f"unknown event type {event.event_type!r}") from exc

    missing = [
        name
        for name in ("ticket_id", "title", "requester_id", "actor_id")
        if not getattr(event, name, None)
    ]
    if event_type is TicketEventType.COMMENT_ADDED and not event.comment_text:
        missing.append("comment_text")
    if missing:
        raise InvalidTicketEventError(
            f"{event_type.value} event for ticket {event.ticket_id!r} is missing "
            + ", ".join(missing)
        )
    return event_type


def _tuple(
    event: TicketEvent,
    recipient_id: str,
    message: str,
    notification_type: NotificationType,
    *,
    related_user_id: str | None,
) -> ResolvedNotification:
    return ResolvedNotification(
        recipient_id=recipient_id,
        message=message,
        notification_type=notification_type,
        ticket_id=event.ticket_id,
        related_user_id=related_user_id,
        ticket_title=event.title,
        actor_name=event.actor_name,
    )


def _resolve_created(
    event: TicketEvent, admin_ids: AdminLookup | None
) -> list[ResolvedNotification]:
    actor = event.actor_id
    resolved = [
        _tuple(
            event,
            event.requester_id,
            f'Your ticket "{event.title}" has been created and is being reviewed.',
            NotificationType.TICKET_CREATED,
            related_user_id=actor,
        )
    ]
    if event.assignee_id:
        resolved.append(
            _tuple(
                event,
                event.assignee_id,
                f'You have been assigned a new ticket: "{event.title}" '
                f"(Priority: {event.priority})",
                NotificationType.TICKET_ASSIGNED,
                related_user_id=actor,
            )
        )

    if admin_ids is None:
        return resolved

    admin_message = f'New ticket created: "{event.title}" (Priority: {event.priority})'
    try:
        admins = [admin_id for admin_id in admin_ids() if admin_id]
    except Exception:
        logger.exception(
            "Could not load administrators for ticket %s; notifying requester and assignee only",
            event.ticket_id,
        )
        return resolved

    for admin_id in admins:
        if admin_id == event.requester_id:
            continue
        resolved.append(
            _tuple(
                event,
                admin_id,
                admin_message,
                NotificationType.TICKET_CREATED,
                related_user_id=actor,
            )
        )
    return resolved


def _resolve_updated(event: TicketEvent) -> list[ResolvedNotification]:
    actor = event.actor_id
    resolved: list[ResolvedNotification] = []

    if event.requester_id != actor:
        resolved.append(
            _tuple(
                event,
                event.requester_id,
                f'Your ticket "{event.title}" has been updated. Status: {event.status}',
                NotificationType.TICKET_UPDATED,
                related_user_id=actor,
            )
        )

    if event.is_reassignment:
        if event.assignee_id and event.assignee_id != actor:
            resolved.append(
                _tuple(
                    event,
                    event.assignee_id,
                    f'You have been assigned to ticket: "{event.title}"',
                    NotificationType.TICKET_ASSIGNED,
                    related_user_id=actor,
                )
            )
        if event.previous_assignee_id != actor:
            resolved.append(
                _tuple(
                    event,
                    event.previous_assignee_id,
                    f'You have been unassigned from ticket: "{event.title}"',
                    NotificationType.TICKET_UPDATED,
                    related_user_id=actor,
                )
            )
    elif event.assignee_id and event.assignee_id != actor:
        resolved.append(
            _tuple(
                event,
                event.assignee_id,
                f'Ticket "{event.title}" has been updated. Status: {event.status}',
                NotificationType.TICKET_UPDATED,
                related_user_id=actor,
            )
        )
    return resolved


def _resolve_comment(event: TicketEvent) -> list[ResolvedNotification]:
    excerpt = event.comment_text[:COMMENT_EXCERPT_LENGTH]
    if len(event.comment_text) > COMMENT_EXCERPT_LENGTH:
        excerpt = f"{excerpt}..."

    messages = {
        event.requester_id: f'New comment on your ticket "{event.title}": {excerpt}',
    }
    if event.assignee_id and event.assignee_id not in messages:
        messages[event.assignee_id] = f'New comment on ticket "{event.title}": {excerpt}'

    return [
        _tuple(
            event,
            recipient_id,
            message,
            NotificationType.COMMENT_ADDED,
            related_user_id=event.actor_id,
        )
        for recipient_id, message in messages.items()
        if recipient_id != event.actor_id
    ]


def _resolve_resolved(event: TicketEvent) -> list[ResolvedNotification]:
    actor = event.actor_id
    resolved: list[ResolvedNotification] = []
    if event.requester_id != actor:
        resolved.append(
            _tuple(
                event,
                event.requester_id,
                f'Your ticket "{event.title}" has been resolved!',
                NotificationType.TICKET_RESOLVED,
                related_user_id=actor,
            )
        )
    # Receipt for the resolver; nobody else caused it.
    resolved.append(
        _tuple(
            event,
            actor,
            f'You resolved ticket "{event.title}"',
            NotificationType.TICKET_RESOLVED,
            related_user_id=None,
        )
    )
    return resolved


def _deduplicate(resolved: Iterable[ResolvedNotification]) -> list[ResolvedNotification]:
    unique: list[ResolvedNotification] = []
    seen: set[tuple[str, str, NotificationType]] = set()
    for notification in resolved:
        key = notification.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(notification)
    return unique


__all__ = ["AdminLookup", "COMMENT_EXCERPT_LENGTH", "resolve_recipients"]
