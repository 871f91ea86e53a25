"""Speech recognition capability interface and the text-fed backend."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from utils.log_utils import log


class RecognizerError(RuntimeError):
    """Raised by a backend that cannot start or stop."""


def _noop(*_args: object) -> None:
    return None


@dataclass
class RecognizerHandlers:
    on_start: Callable[[], None] = _noop
    on_end: Callable[[], None] = _noop
    on_error: Callable[[str], None] = _noop
    on_result: Callable[[str, bool], None] = _noop


class RecognizerBackend(Protocol):
    """What the recognition session needs from a platform recognizer.

    Backends report lifecycle through the bound handlers: on_start once audio
    capture runs, on_end whenever capture stops (for any reason), on_error with
    a short code ("network", "no-speech", "aborted", ...), and on_result with
    the raw transcript and whether it is final.
    """

    def initialize(self) -> bool:
        ...

    def configure(self, *, continuous: bool, interim_results: bool, language: str) -> None:
        ...

    def set_handlers(self, handlers: RecognizerHandlers) -> None:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class TextRecognizer:
    """Backend fed with typed or injected transcripts (console, HTTP API)."""

    def __init__(self) -> None:
        self.handlers = RecognizerHandlers()
        self.continuous = True
        self.interim_results = True
        self.language = "en-US"
        self._running = False
        self._lock = threading.Lock()

    def initialize(self) -> bool:
        return True

    def configure(self, *, continuous: bool, interim_results: bool, language: str) -> None:
        self.continuous = continuous
        self.interim_results = interim_results
        self.language = language

    def set_handlers(self, handlers: RecognizerHandlers) -> None:
        self.handlers = handlers

    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                raise RecognizerError("recognition has already started")
            self._running = True
        self.handlers.on_start()

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
        self.handlers.on_end()

    def push(self, transcript: str, *, final: bool = True) -> bool:
        """Emit transcript as a recognition result. Returns False when not running."""
        if not self._running:
            log("VOICE", f"dropped '{transcript}' (recognizer not running)", "WARN")
            return False
        if not final and not self.interim_results:
            return False
        self.handlers.on_result(transcript, final)
        if not self.continuous and final:
            self.stop()
        return True
