"""Spoken announcements: queued text-to-speech with interrupt, rate and voice."""

from __future__ import annotations

import queue
import threading
from collections import deque
from dataclasses import dataclass
from typing import Protocol

from utils.log_utils import log

MIN_RATE = 0.5
MAX_RATE = 2.0


@dataclass(frozen=True)
class Voice:
    id: str
    name: str
    language: str | None = None


@dataclass(frozen=True)
class Utterance:
    text: str
    rate: float
    voice_id: str | None


class SpeechEngine(Protocol):
    def available(self) -> bool:
        ...

    def say(self, utterance: Utterance) -> None:
        """Speak one utterance, blocking until done or interrupted."""
        ...

    def stop(self) -> None:
        ...

    def voices(self) -> list[Voice]:
        ...


class LogSpeechEngine:
    """Writes utterances to the log instead of the speakers."""

    def __init__(self) -> None:
        self._voices = [Voice(id="log", name="Log output", language="en-US")]

    def available(self) -> bool:
        return True

    def say(self, utterance: Utterance) -> None:
        log("SPEECH", f"(rate {utterance.rate:.1f}) {utterance.text}")

    def stop(self) -> None:
        return None

    def voices(self) -> list[Voice]:
        return list(self._voices)


class SpeechOutput:
    """Speech output port used by every page and game.

    With threaded=True utterances are spoken in order by a worker thread so a
    slow engine never blocks command dispatch. Every accepted utterance is kept
    in a short history regardless of the engine.
    """

    def __init__(
        self,
        engine: SpeechEngine | None,
        *,
        threaded: bool = True,
        rate: float = 1.0,
        history_size: int = 20,
    ) -> None:
        self.engine = engine
        self.threaded = threaded
        self._rate = rate if MIN_RATE <= rate <= MAX_RATE else 1.0
        self._voice_index: int | None = None
        self._voice_id: str | None = None
        self.history: deque[str] = deque(maxlen=history_size)
        self._queue: queue.Queue[Utterance | None] = queue.Queue()
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()

    def initialize(self) -> bool:
        if self.engine is None or not self.engine.available():
            log("SPEECH", "Speech synthesis not supported", "ERROR")
            return False
        return True

    def speak(self, text: str, immediate: bool = False) -> bool:
        if self.engine is None:
            log("SPEECH", f"Speech synthesis not supported; dropped '{text}'", "WARN")
            return False
        text = text.strip()
        if not text:
            return False
        utterance = Utterance(text=text, rate=self._rate, voice_id=self._voice_id)
        self.history.append(text)
        if immediate:
            self.cancel()
        if not self.threaded:
            self._say(utterance)
            return True
        self._ensure_worker()
        self._queue.put(utterance)
        return True

    def cancel(self) -> None:
        """Drop queued utterances and interrupt the current one."""
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
        if self.engine is not None:
            self.engine.stop()

    def last_spoken(self) -> str | None:
        return self.history[-1] if self.history else None

    @property
    def rate(self) -> float:
        return self._rate

    def set_rate(self, rate: float) -> bool:
        if MIN_RATE <= rate <= MAX_RATE:
            self._rate = rate
            return True
        return False

    def list_voices(self) -> list[Voice]:
        if self.engine is None:
            return []
        return self.engine.voices()

    @property
    def voice_index(self) -> int | None:
        return self._voice_index

    def select_voice(self, index_or_name: int | str) -> bool:
        """Select a voice by index or by case-insensitive name fragment."""
        voices = self.list_voices()
        if not voices:
            log("SPEECH", "No voices available", "WARN")
            return False
        if isinstance(index_or_name, int):
            if not 0 <= index_or_name < len(voices):
                return False
            index = index_or_name
        else:
            needle = index_or_name.lower()
            matches = [i for i, voice in enumerate(voices) if needle in voice.name.lower()]
            if not matches:
                return False
            index = matches[0]
        self._voice_index = index
        self._voice_id = voices[index].id
        return True

    def shutdown(self) -> None:
        with self._lock:
            worker = self._worker
            self._worker = None
        if worker is not None:
            self._queue.put(None)
            worker.join(timeout=2.0)

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._run, name="speech-output", daemon=True)
                self._worker.start()

    def _run(self) -> None:
        while True:
            utterance = self._queue.get()
            if utterance is None:
                return
            self._say(utterance)

    def _say(self, utterance: Utterance) -> None:
        try:
            self.engine.say(utterance)
        except Exception as exc:
            log("SPEECH", f"Error speaking '{utterance.text}': {exc!r}", "ERROR")
