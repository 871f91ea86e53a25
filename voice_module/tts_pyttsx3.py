"""Offline text-to-speech through pyttsx3 (SAPI5, NSSpeechSynthesizer, eSpeak)."""

from __future__ import annotations

import threading

import pyttsx3

from utils.log_utils import log
from voice_module.speech_output import Utterance, Voice

BASE_WORDS_PER_MINUTE = 180


class Pyttsx3Engine:
    """Speaks through a pyttsx3 engine created lazily on the speaking thread."""

    def __init__(self, volume: float = 0.9) -> None:
        self.volume = volume
        self._engine = None
        self._lock = threading.Lock()

    def _ensure_engine(self):
        if self._engine is None:
            self._engine = pyttsx3.init()
            self._engine.setProperty("volume", self.volume)
        return self._engine

    def available(self) -> bool:
        try:
            self._ensure_engine()
        except (RuntimeError, OSError, ImportError) as exc:
            log("SPEECH", f"pyttsx3 unavailable: {exc}", "ERROR")
            return False
        return True

    def say(self, utterance: Utterance) -> None:
        with self._lock:
            engine = self._ensure_engine()
            engine.setProperty("rate", int(BASE_WORDS_PER_MINUTE * utterance.rate))
            if utterance.voice_id:
                engine.setProperty("voice", utterance.voice_id)
            engine.say(utterance.text)
            engine.runAndWait()

    def stop(self) -> None:
        if self._engine is not None:
            self._engine.stop()

    def voices(self) -> list[Voice]:
        engine = self._ensure_engine()
        result: list[Voice] = []
        for voice in engine.getProperty("voices") or []:
            languages = getattr(voice, "languages", None) or []
            language = languages[0] if languages else None
            if isinstance(language, bytes):
                language = language.decode("utf-8", errors="ignore")
            result.append(Voice(id=str(voice.id), name=str(voice.name), language=language))
        return result
