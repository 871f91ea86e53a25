"""Continuous microphone recognizer built on the SpeechRecognition library."""

from __future__ import annotations

import os
import threading
from typing import TYPE_CHECKING, Any

import speech_recognition as sr

from utils.log_utils import log
from voice_module.recognizers import RecognizerError, RecognizerHandlers

if TYPE_CHECKING:
    from voice_module.stt_whisper_local import WhisperLocalEngine


class MicrophoneRecognizer:
    """Listens in the background and reports each captured phrase as a final result.

    Phrase capture and silence detection come from SpeechRecognition; the text
    comes from Google Web Speech ("google") or local faster-whisper
    ("whisper-local"). Failures map to the session's error codes:
    UnknownValueError is "no-speech", RequestError is "network", anything else
    is "audio-capture" and ends the capture so the session restarts it.
    """

    def __init__(
        self,
        provider: str | None = None,
        *,
        device_index: int | None = None,
        phrase_time_limit: float = 4.0,
        ambient_adjust_secs: float = 0.5,
    ) -> None:
        self.provider = (provider or os.getenv("STT_PROVIDER") or "google").lower()
        self.device_index = device_index
        self.phrase_time_limit = phrase_time_limit
        self.ambient_adjust_secs = ambient_adjust_secs
        self.handlers = RecognizerHandlers()
        self.continuous = True
        self.language = "en-US"
        self._recognizer = sr.Recognizer()
        self._stop_listening: Any = None
        self._whisper: WhisperLocalEngine | None = None
        self._lock = threading.Lock()

    def initialize(self) -> bool:
        try:
            names = sr.Microphone.list_microphone_names()
        except (AttributeError, OSError) as exc:
            log("VOICE", f"No microphone capability: {exc}", "ERROR")
            return False
        return bool(names)

    def configure(self, *, continuous: bool, interim_results: bool, language: str) -> None:
        # Phrases are only reported once complete, so interim results never occur.
        self.continuous = continuous
        self.language = language

    def set_handlers(self, handlers: RecognizerHandlers) -> None:
        self.handlers = handlers

    def start(self) -> None:
        with self._lock:
            if self._stop_listening is not None:
                raise RecognizerError("recognition has already started")
            try:
                microphone = sr.Microphone(device_index=self.device_index)
                with microphone as source:
                    self._recognizer.adjust_for_ambient_noise(
                        source, duration=self.ambient_adjust_secs
                    )
                self._stop_listening = self._recognizer.listen_in_background(
                    microphone, self._on_audio, phrase_time_limit=self.phrase_time_limit
                )
            except (AttributeError, OSError) as exc:
                raise RecognizerError(f"could not open microphone: {exc}") from exc
        self.handlers.on_start()

    def stop(self) -> None:
        with self._lock:
            stop_listening = self._stop_listening
            self._stop_listening = None
        if stop_listening is None:
            return
        stop_listening(wait_for_stop=False)
        self.handlers.on_end()

    def transcribe(self, audio: sr.AudioData) -> str:
        if self.provider == "whisper-local":
            text = self._whisper_engine().transcribe_wav_bytes(
                audio.get_wav_data(convert_rate=16000, convert_width=2)
            )
            if not text:
                raise sr.UnknownValueError()
            return text
        return self._recognizer.recognize_google(audio, language=self.language)

    def _on_audio(self, _recognizer: sr.Recognizer, audio: sr.AudioData) -> None:
        try:
            text = self.transcribe(audio)
        except sr.UnknownValueError:
            self.handlers.on_error("no-speech")
            return
        except sr.RequestError as exc:
            log("VOICE", f"Recognition service unavailable: {exc}", "WARN")
            self.handlers.on_error("network")
            return
        except Exception as exc:
            log("VOICE", f"Audio capture failed: {exc!r}", "ERROR")
            self.handlers.on_error("audio-capture")
            self.stop()
            return
        if text:
            self.handlers.on_result(text, True)
        if not self.continuous:
            self.stop()

    def _whisper_engine(self) -> WhisperLocalEngine:
        if self._whisper is None:
            from voice_module.stt_whisper_local import WhisperLocalEngine

            self._whisper = WhisperLocalEngine(language=self.language.split("-")[0])
        return self._whisper
