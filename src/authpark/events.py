"""Auth event names and the publish/subscribe channel they travel on.

The interception core depends only on the :class:`EventBus` protocol, a
single ``publish(topic, payload)`` capability. :class:`Broadcaster` is the
in-process implementation used by default: subscribers are called
synchronously, in subscription order, and a failing subscriber is logged
without affecting the others or the publisher.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

EVENT_MISSING_PARAMETER = "event:auth-missingParameter"
"""A request failed with 400 and was parked."""

EVENT_LOGIN_REQUIRED = "event:auth-loginRequired"
"""A request failed with 401 and was parked."""

EVENT_FORBIDDEN = "event:auth-forbidden"
"""A request failed with 403; it is not parked."""

EVENT_LOGIN_CONFIRMED = "event:auth-loginConfirmed"
"""Authentication succeeded; parked requests are being replayed."""

EVENT_LOGIN_CANCELLED = "event:auth-loginCancelled"
"""Authentication was abandoned; parked requests were rejected or dropped."""

ALL_EVENTS = (
    EVENT_MISSING_PARAMETER,
    EVENT_LOGIN_REQUIRED,
    EVENT_FORBIDDEN,
    EVENT_LOGIN_CONFIRMED,
    EVENT_LOGIN_CANCELLED,
)

Subscriber = Callable[[str, Any], None]


class EventBus(Protocol):
    """Fire-and-forget broadcast channel."""

    def publish(self, topic: str, payload: Any) -> None: ...


class Broadcaster:
    """In-process :class:`EventBus` with per-topic subscriptions.

    Example::

        bus = Broadcaster()
        bus.subscribe(EVENT_LOGIN_REQUIRED, lambda topic, note: prompt_login())
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for *topic*.

        Returns:
            A function that removes the subscription when called.
        """
        self._subscribers[topic].append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(topic, callback)

        return _unsubscribe

    def unsubscribe(self, topic: str, callback: Subscriber) -> None:
        """Remove *callback* from *topic*. Unknown callbacks are ignored."""
        callbacks = self._subscribers.get(topic)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def publish(self, topic: str, payload: Any) -> None:
        """Deliver *payload* to every subscriber of *topic*.

        The subscriber list is copied first, so callbacks may subscribe or
        unsubscribe while being notified.
        """
        callbacks = list(self._subscribers.get(topic, ()))
        logger.debug("Publishing %s to %d subscriber(s)", topic, len(callbacks))
        for callback in callbacks:
            try:
                callback(topic, payload)
            except Exception:
                logger.exception("Subscriber %r failed handling %s", callback, topic)
