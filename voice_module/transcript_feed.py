"""Short-lived feed of recently recognized text for on-screen display."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from utils.event_bus import EventBus, Subscription
from voice_module.recognition_session import RECOGNIZED_TEXT_TOPIC


@dataclass
class FeedEntry:
    """One recognized text with the time it was heard."""

    text: str
    final: bool
    timestamp: float


class RecentTranscripts:
    """Keeps the last few recognized texts, each visible for a limited time.

    Purely observational: nothing in command handling reads from it.
    """

    def __init__(
        self,
        max_entries: int = 3,
        ttl_secs: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the feed.

        Args:
            max_entries: Number of entries kept (oldest dropped first)
            ttl_secs: Seconds an entry stays visible
            clock: Monotonic time source, injectable for tests
        """
        self._entries: deque[FeedEntry] = deque(maxlen=max_entries)
        self._ttl = ttl_secs
        self._clock = clock
        self._lock = threading.Lock()
        self._subscription: Subscription | None = None

    def attach(self, events: EventBus) -> Subscription:
        self._subscription = events.subscribe(RECOGNIZED_TEXT_TOPIC, self._on_recognized)
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def add(self, text: str, final: bool = True) -> None:
        with self._lock:
            self._entries.append(FeedEntry(text=text, final=final, timestamp=self._clock()))

    def entries(self) -> list[FeedEntry]:
        """Return unexpired entries, oldest first, pruning expired ones."""
        now = self._clock()
        with self._lock:
            while self._entries and (now - self._entries[0].timestamp) > self._ttl:
                self._entries.popleft()
            return list(self._entries)

    def texts(self) -> list[str]:
        return [entry.text for entry in self.entries()]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _on_recognized(self, payload: dict) -> None:
        text = str(payload.get("text", "")).strip()
        if text:
            self.add(text, bool(payload.get("final", True)))
