"""Small topic-based event bus for inter-module communication."""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from utils.log_utils import log


class Subscription:
    """Handle returned by subscribe(); calling it (or cancel()) removes the handler.

    Removal is idempotent and safe after the topic has already fired.
    """

    def __init__(self, bus: EventBus, topic: str, handler: Callable) -> None:
        self.topic = topic
        self.handler = handler
        self._bus = bus
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._bus._remove(self)

    def __call__(self) -> None:
        self.cancel()


class EventBus:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Callable) -> Subscription:
        subscription = Subscription(self, topic, handler)
        with self._lock:
            self._subscribers[topic].append(subscription)
        return subscription

    def publish(self, topic: str, payload: Any = None) -> int:
        """Deliver payload to every current subscriber of topic, in order.

        Returns the number of handlers invoked. A failing handler is logged and
        does not stop delivery to the others.
        """
        with self._lock:
            snapshot = list(self._subscribers.get(topic, ()))
        delivered = 0
        for subscription in snapshot:
            if not subscription.active:
                continue
            try:
                subscription.handler(payload)
            except Exception as exc:
                log("BUS", f"handler for '{topic}' failed: {exc!r}", "ERROR")
            delivered += 1
        return delivered

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            handlers = self._subscribers.get(subscription.topic)
            if not handlers:
                return
            try:
                handlers.remove(subscription)
            except ValueError:
                return
            if not handlers:
                del self._subscribers[subscription.topic]
