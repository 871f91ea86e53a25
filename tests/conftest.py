"""Shared fakes: a manual clock scheduler, a recording speech engine, a scriptable recognizer."""

from __future__ import annotations

import random

import pytest

from feedback_module.haptics import HapticFeedback, LogVibrator
from utils import settings_store
from utils.scheduler import ScheduledCall
from voice_module.recognizers import RecognizerError, RecognizerHandlers
from voice_module.speech_output import SpeechOutput, Utterance, Voice


class ManualScheduler:
    """Scheduler driven by advance() instead of wall-clock time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._calls: list[tuple[float, int, ScheduledCall]] = []
        self._seq = 0

    def call_later(self, delay, callback, *args):
        call = ScheduledCall(delay, callback, args)
        self._calls.append((self.now + delay, self._seq, call))
        self._seq += 1
        return call

    def cancel_all(self) -> None:
        for _due, _seq, call in self._calls:
            call.cancel()
        self._calls.clear()

    @property
    def pending(self) -> list[ScheduledCall]:
        return [call for _due, _seq, call in self._calls if call.pending]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (entry for entry in self._calls if entry[0] <= target + 1e-9 and entry[2].pending),
                key=lambda entry: (entry[0], entry[1]),
            )
            if not due:
                break
            when, _seq, call = due[0]
            self.now = when
            call.run()
        self.now = target
        self._calls = [entry for entry in self._calls if entry[2].pending]


class RecordingEngine:
    def __init__(self, voices: list[Voice] | None = None) -> None:
        self.spoken: list[Utterance] = []
        self.stops = 0
        self._voices = voices if voices is not None else [
            Voice(id="v0", name="Alex", language="en-US"),
            Voice(id="v1", name="Samantha", language="en-US"),
        ]

    def available(self) -> bool:
        return True

    def say(self, utterance: Utterance) -> None:
        self.spoken.append(utterance)

    def stop(self) -> None:
        self.stops += 1

    def voices(self) -> list[Voice]:
        return list(self._voices)


class FakeRecognizer:
    """Recognizer whose lifecycle events are triggered by the test."""

    def __init__(self, supported: bool = True) -> None:
        self.supported = supported
        self.handlers = RecognizerHandlers()
        self.config: dict = {}
        self.start_calls = 0
        self.stop_calls = 0
        self.fail_starts = 0
        self.running = False

    def initialize(self) -> bool:
        return self.supported

    def configure(self, *, continuous, interim_results, language) -> None:
        self.config = {
            "continuous": continuous,
            "interim_results": interim_results,
            "language": language,
        }

    def set_handlers(self, handlers: RecognizerHandlers) -> None:
        self.handlers = handlers

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_starts:
            self.fail_starts -= 1
            raise RecognizerError("recognizer busy")
        self.running = True
        self.handlers.on_start()

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False
        self.handlers.on_end()

    def end(self) -> None:
        self.running = False
        self.handlers.on_end()

    def error(self, code: str) -> None:
        self.handlers.on_error(code)

    def result(self, text: str, final: bool = True) -> None:
        self.handlers.on_result(text, final)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def speech(engine) -> SpeechOutput:
    return SpeechOutput(engine, threaded=False)


@pytest.fixture
def vibrator() -> LogVibrator:
    return LogVibrator()


@pytest.fixture
def haptics(vibrator) -> HapticFeedback:
    return HapticFeedback(vibrator)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture(autouse=True)
def settings_file(tmp_path, monkeypatch):
    """Point the settings store at a throwaway file for every test."""
    path = tmp_path / "app_settings.json"
    monkeypatch.setenv("APP_SETTINGS_PATH", str(path))
    settings_store.clear_cache()
    yield path
    settings_store.clear_cache()
