"""Delayed callbacks with cancellation tokens."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Protocol

from utils.log_utils import log


class ScheduledCall:
    """Cancellation token for one delayed callback."""

    def __init__(self, delay: float, callback: Callable[..., Any], args: tuple = ()) -> None:
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.done = False
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.done)

    def cancel(self) -> bool:
        with self._lock:
            if self.done or self.cancelled:
                return False
            self.cancelled = True
            return True

    def run(self) -> None:
        with self._lock:
            if self.cancelled or self.done:
                return
            self.done = True
        try:
            self.callback(*self.args)
        except Exception as exc:
            log("SCHEDULER", f"delayed callback {self.callback!r} failed: {exc!r}", "ERROR")


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        ...

    def cancel_all(self) -> None:
        ...


class TimerScheduler:
    """Runs callbacks on daemon threading.Timer threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: dict[ScheduledCall, threading.Timer] = {}

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        call = ScheduledCall(delay, callback, args)
        timer = threading.Timer(max(0.0, delay), self._fire, args=(call,))
        timer.daemon = True
        with self._lock:
            self._timers[call] = timer
        timer.start()
        return call

    def cancel_all(self) -> None:
        with self._lock:
            pending = list(self._timers.items())
            self._timers.clear()
        for call, timer in pending:
            call.cancel()
            timer.cancel()

    def _fire(self, call: ScheduledCall) -> None:
        with self._lock:
            self._timers.pop(call, None)
        call.run()
