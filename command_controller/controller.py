"""Core controller that wires recognition, dispatch, feedback ports and pages."""

from __future__ import annotations

import os
import random
from typing import Any

from command_controller.dispatch import CommandDispatchBus
from feedback_module.haptics import HapticFeedback, LogVibrator, NullVibrator, Vibrator
from games.chess import ChessGame
from games.memory import MemoryGame
from ui.navigator import Navigator
from ui.views import Page, SettingsView, ViewContext
from utils.event_bus import EventBus
from utils.log_utils import log, set_level
from utils.scheduler import Scheduler, TimerScheduler
from utils.settings_store import get_settings, update_settings
from voice_module.recognition_session import RecognitionSession
from voice_module.recognizers import RecognizerBackend, TextRecognizer
from voice_module.speech_output import LogSpeechEngine, SpeechEngine, SpeechOutput
from voice_module.transcript_feed import RecentTranscripts


def build_recognizer(name: str | None = None) -> RecognizerBackend | None:
    """Create the recognizer backend named by RECOGNIZER_BACKEND."""
    name = (name or os.getenv("RECOGNIZER_BACKEND") or "text").lower()
    if name == "text":
        return TextRecognizer()
    if name == "microphone":
        from voice_module.stt_microphone import MicrophoneRecognizer

        return MicrophoneRecognizer()
    if name == "none":
        return None
    raise ValueError(f"Unknown recognizer backend '{name}'")


def build_speech_engine(name: str | None = None) -> SpeechEngine | None:
    name = (name or os.getenv("SPEECH_ENGINE") or "log").lower()
    if name == "log":
        return LogSpeechEngine()
    if name == "pyttsx3":
        from voice_module.tts_pyttsx3 import Pyttsx3Engine

        return Pyttsx3Engine()
    if name == "none":
        return None
    raise ValueError(f"Unknown speech engine '{name}'")


def build_vibrator(name: str | None = None) -> Vibrator:
    name = (name or os.getenv("HAPTICS_BACKEND") or "log").lower()
    if name == "log":
        return LogVibrator()
    if name == "none":
        return NullVibrator()
    raise ValueError(f"Unknown haptics backend '{name}'")


class AppController:
    def __init__(
        self,
        *,
        recognizer: RecognizerBackend | None,
        speech_engine: SpeechEngine | None,
        vibrator: Vibrator,
        scheduler: Scheduler | None = None,
        settings: dict[str, Any] | None = None,
        threaded_speech: bool = True,
        language: str = "en-US",
        rng: random.Random | None = None,
    ) -> None:
        settings = settings if settings is not None else get_settings()
        self.settings = settings
        self.events = EventBus()
        self.dispatch_bus = CommandDispatchBus(self.events)
        self.scheduler = scheduler or TimerScheduler()
        self.recognizer = recognizer
        self.speech = SpeechOutput(
            speech_engine,
            threaded=threaded_speech,
            rate=float(settings.get("speech_rate", 1.0)),
        )
        self.haptics = HapticFeedback(
            vibrator,
            enabled=bool(settings.get("vibration_enabled", True)),
            intensity=float(settings.get("vibration_intensity", 1.0)),
        )
        self.session = RecognitionSession(
            recognizer, self.dispatch_bus, self.scheduler, events=self.events, language=language
        )
        self.feed = RecentTranscripts()
        self.feed.attach(self.events)
        self.chess = ChessGame(self.speech, self.haptics)
        self.memory = MemoryGame(self.speech, self.haptics, self.scheduler, rng=rng)
        self.navigator = Navigator(
            ViewContext(
                bus=self.dispatch_bus,
                speech=self.speech,
                haptics=self.haptics,
                chess=self.chess,
                memory=self.memory,
                navigate=self.navigate,
                save_settings=self.save_settings,
            )
        )
        self.voice_enabled = False

    @classmethod
    def from_env(cls, **overrides: Any) -> AppController:
        kwargs: dict[str, Any] = {
            "recognizer": build_recognizer(),
            "speech_engine": build_speech_engine(),
            "vibrator": build_vibrator(),
            "language": os.getenv("RECOGNITION_LANGUAGE", "en-US"),
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    def start(self) -> bool:
        """Apply persisted settings, start listening, and show the home page.

        Returns False when voice input is unavailable; the pages still work
        through pointer input.
        """
        set_level(self.settings.get("log_level", "INFO"))
        self.speech.initialize()
        voice_index = self.settings.get("voice_index")
        if isinstance(voice_index, int) and not self.speech.select_voice(voice_index):
            log("SPEECH", f"Saved voice {voice_index} not available", "WARN")

        self.voice_enabled = self.session.initialize() and self.session.start()
        if not self.voice_enabled:
            log("APP", "Voice commands unavailable; pointer input only", "WARN")
        self.navigator.navigate(Page.HOME)
        log("APP", "Accessible games ready")
        return self.voice_enabled

    def stop(self) -> None:
        self.session.stop()
        self.navigator.close()
        self.scheduler.cancel_all()
        self.speech.shutdown()

    def navigate(self, page: Page | str) -> bool:
        return self.navigator.navigate(page)

    @property
    def settings_view(self) -> SettingsView:
        view = self.navigator.view(Page.SETTINGS)
        if not isinstance(view, SettingsView):
            raise TypeError(f"Settings page is a {type(view).__name__}, not a SettingsView")
        return view

    def save_settings(self, **changes: Any) -> dict[str, Any]:
        self.settings.update(changes)
        return update_settings(**changes)

    def submit_transcript(self, text: str, *, final: bool = True) -> bool:
        """Feed a transcript through the text recognizer, as if it were heard."""
        if not isinstance(self.recognizer, TextRecognizer):
            raise RuntimeError("Transcripts can only be injected into the text recognizer")
        return self.recognizer.push(text, final=final)

    def status(self) -> dict[str, Any]:
        page = self.navigator.current_page
        return {
            "page": page.value if page else None,
            "voice_enabled": self.voice_enabled,
            "recognition": self.session.status(),
            "speech_rate": self.speech.rate,
            "vibration_enabled": self.haptics.enabled,
            "vibration_intensity": self.haptics.intensity,
            "last_spoken": self.speech.last_spoken(),
        }
