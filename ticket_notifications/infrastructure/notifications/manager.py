"""Subscription registry behind the live notification channel."""

from __future__ import annotations

import copy
import inspect
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, DefaultDict, Union

logger = logging.getLogger(__name__)

Message = dict[str, Any]
SubscriptionCallback = Callable[[Message], Union[Awaitable[None], None]]


@dataclass(eq=False)
class Subscription:
    """Handle returned by :meth:`NotificationConnectionManager.subscribe`."""

    recipient_id: str
    callback: SubscriptionCallback = field(repr=False)
    active: bool = True


class NotificationConnectionManager:
    """Manage live subscriptions grouped by recipient.

    Subscribers are plain callbacks (sync or async), so a websocket, an SSE
    stream or an in-process client view can all listen the same way.
    """

    def __init__(self) -> None:
        self._subscriptions: DefaultDict[str, list[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, recipient_id: str, callback: SubscriptionCallback) -> Subscription:
        """Register ``callback`` to receive rows addressed to ``recipient_id``."""

        subscription = Subscription(recipient_id=recipient_id, callback=callback)
        with self._lock:
            self._subscriptions[recipient_id].append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove ``subscription``; calling it again is a no-op."""

        with self._lock:
            subscription.active = False
            subscriptions = self._subscriptions.get(subscription.recipient_id)
            if subscriptions is None:
                return
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                self._subscriptions.pop(subscription.recipient_id, None)

    def subscriber_count(self, recipient_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(recipient_id, ()))

    async def send_to_user(self, recipient_id: str, message: Message) -> None:
        """Deliver ``message`` to every active subscription of ``recipient_id``."""

        with self._lock:
            subscriptions = list(self._subscriptions.get(recipient_id, ()))
        for subscription in subscriptions:
            if not subscription.active:
                continue
            try:
                result = subscription.callback(copy.deepcopy(message))
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning(
                    "Dropping live subscription for %s after delivery failure",
                    recipient_id,
                    exc_info=True,
                )
                self.unsubscribe(subscription)


notification_manager = NotificationConnectionManager()


__all__ = [
    "NotificationConnectionManager",
    "Subscription",
    "SubscriptionCallback",
    "notification_manager",
]
