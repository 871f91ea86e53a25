"""Lifecycle of the single continuous-listening recognition session.

The platform recognizer ends its session for many benign reasons (silence
timeout, internal limits), so "ended" is treated as normal operation and the
session restarts itself until stop() is requested. Errors are split into
transient ones that are only logged, "aborted" which restarts after a short
delay, and everything else which restarts after a longer delay. No error
leaves the session stopped while the application runs.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any

from command_controller.dispatch import CommandDispatchBus
from utils.event_bus import EventBus
from utils.log_utils import log
from utils.scheduler import ScheduledCall, Scheduler
from utils.settings_store import deep_log
from voice_module.recognizers import RecognizerBackend, RecognizerError, RecognizerHandlers
from voice_module.voice_utils import normalize_phrase

RECOGNIZED_TEXT_TOPIC = "recognized_text"
LISTENING_CHANGED_TOPIC = "listening_changed"

TRANSIENT_ERRORS = frozenset({"network", "no-speech"})
RESTART_BACKOFF_SECS = 1.0
ABORT_RESTART_DELAY_SECS = 0.25
ERROR_RESTART_DELAY_SECS = 2.0


class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    ERROR = "error"
    RESTARTING = "restarting"


class RecognitionSession:
    def __init__(
        self,
        backend: RecognizerBackend | None,
        dispatch_bus: CommandDispatchBus,
        scheduler: Scheduler,
        *,
        events: EventBus | None = None,
        language: str = "en-US",
        restart_backoff_secs: float = RESTART_BACKOFF_SECS,
        abort_restart_delay_secs: float = ABORT_RESTART_DELAY_SECS,
        error_restart_delay_secs: float = ERROR_RESTART_DELAY_SECS,
    ) -> None:
        self.backend = backend
        self.dispatch_bus = dispatch_bus
        self.scheduler = scheduler
        self.events = events or dispatch_bus.events
        self.language = language
        self.restart_backoff_secs = restart_backoff_secs
        self.abort_restart_delay_secs = abort_restart_delay_secs
        self.error_restart_delay_secs = error_restart_delay_secs

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._listening = False
        self._initialized = False
        self._wanted = False
        self._pending_restart: ScheduledCall | None = None
        self.restart_count = 0
        self.last_error: str | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    def is_initialized(self) -> bool:
        return self._initialized

    def is_listening(self) -> bool:
        return self._listening

    def has_pending_restart(self) -> bool:
        return self._pending_restart is not None and self._pending_restart.pending

    def status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "supported": self._initialized,
                "state": self._state.value,
                "listening": self._listening,
                "restart_pending": self.has_pending_restart(),
                "restart_count": self.restart_count,
                "last_error": self.last_error,
            }

    def initialize(self) -> bool:
        """Configure the backend; False when the host has no recognizer."""
        with self._lock:
            if self._initialized:
                return True
            if self.backend is None:
                log("VOICE", "Speech recognition not supported on this host", "ERROR")
                return False
            try:
                supported = self.backend.initialize()
            except RecognizerError as exc:
                log("VOICE", f"Error initializing speech recognition: {exc}", "ERROR")
                supported = False
            if not supported:
                log("VOICE", "Speech recognition not supported on this host", "ERROR")
                return False
            self.backend.configure(continuous=True, interim_results=True, language=self.language)
            self.backend.set_handlers(
                RecognizerHandlers(
                    on_start=self._on_start,
                    on_end=self._on_end,
                    on_error=self._on_error,
                    on_result=self._on_result,
                )
            )
            self._initialized = True
            log("VOICE", f"Recognition session initialized ({self.language})")
            return True

    def start(self) -> bool:
        """Begin listening. A no-op returning False when already listening."""
        with self._lock:
            if not self._initialized:
                return False
            if self._state in (SessionState.STARTING, SessionState.LISTENING):
                return False
            self._wanted = True
            self._cancel_pending_restart()
            return self._start_backend()

    def stop(self) -> bool:
        with self._lock:
            self._wanted = False
            self._cancel_pending_restart()
            if self._state not in (SessionState.STARTING, SessionState.LISTENING):
                self._state = SessionState.IDLE
                return False
            try:
                self.backend.stop()
            except RecognizerError as exc:
                log("VOICE", f"Error stopping speech recognition: {exc}", "ERROR")
                return False
            self._set_listening(False)
            self._state = SessionState.IDLE
            log("VOICE", "Recognition session stopped")
            return True

    def _start_backend(self) -> bool:
        self._state = SessionState.STARTING
        try:
            self.backend.start()
        except RecognizerError as exc:
            log(
                "VOICE",
                f"Error starting speech recognition: {exc}; retrying in {self.restart_backoff_secs:.1f}s",
                "ERROR",
            )
            self._state = SessionState.ERROR
            self._schedule_restart(self.restart_backoff_secs)
            return False
        return True

    def _on_start(self) -> None:
        with self._lock:
            self._state = SessionState.LISTENING
            self._set_listening(True)
        deep_log("[DEEP][VOICE] recognizer started")

    def _on_end(self) -> None:
        with self._lock:
            self._set_listening(False)
            if self._state in (SessionState.STARTING, SessionState.LISTENING):
                self._state = SessionState.IDLE
            if not self._wanted:
                self._state = SessionState.IDLE
                return
            if self.has_pending_restart():
                # An error handler already chose the delay; keep it.
                return
            log("VOICE", "Recognition ended, restarting")
            self._attempt_restart()

    def _on_error(self, code: str) -> None:
        code = (code or "unknown").strip().lower()
        self.last_error = code
        if code in TRANSIENT_ERRORS:
            log("VOICE", f"Transient recognition error '{code}', continuing", "WARN")
            return
        with self._lock:
            if not self._wanted:
                return
            if code == "aborted":
                log("VOICE", "Recognition aborted, restarting shortly", "WARN")
                self._set_listening(False)
                if self._state in (SessionState.STARTING, SessionState.LISTENING):
                    self._state = SessionState.RESTARTING
                self._schedule_restart(self.abort_restart_delay_secs)
                return
            log("VOICE", f"Speech recognition error '{code}'", "ERROR")
            self._set_listening(False)
            self._state = SessionState.ERROR
            self._schedule_restart(self.error_restart_delay_secs)

    def _on_result(self, transcript: str, is_final: bool) -> None:
        text = normalize_phrase(transcript or "")
        if not text:
            return
        self.events.publish(RECOGNIZED_TEXT_TOPIC, {"text": text, "final": bool(is_final)})
        if not is_final:
            deep_log(f"[DEEP][VOICE] interim: {text}")
            return
        log("VOICE", f"Voice command recognized: {text}")
        self.dispatch_bus.classify_and_dispatch(text)

    def _attempt_restart(self) -> None:
        self._pending_restart = None
        if not self._wanted:
            return
        if self._state in (SessionState.STARTING, SessionState.LISTENING):
            return
        self._state = SessionState.RESTARTING
        self.restart_count += 1
        try:
            self.backend.start()
        except RecognizerError as exc:
            log(
                "VOICE",
                f"Restart failed ({exc}); retrying in {self.restart_backoff_secs:.1f}s",
                "WARN",
            )
            self._state = SessionState.ERROR
            self._schedule_restart(self.restart_backoff_secs)
            return
        if self._state == SessionState.RESTARTING:
            self._state = SessionState.STARTING

    def _run_scheduled_restart(self) -> None:
        with self._lock:
            self._attempt_restart()

    def _schedule_restart(self, delay: float) -> None:
        if self.has_pending_restart():
            return
        self._pending_restart = self.scheduler.call_later(delay, self._run_scheduled_restart)

    def _cancel_pending_restart(self) -> None:
        if self._pending_restart is not None:
            self._pending_restart.cancel()
            self._pending_restart = None

    def _set_listening(self, value: bool) -> None:
        if self._listening == value:
            return
        self._listening = value
        self.events.publish(LISTENING_CHANGED_TOPIC, {"listening": value})
