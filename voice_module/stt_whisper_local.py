"""Local Whisper transcription of captured phrases using faster-whisper."""

from __future__ import annotations

import io
import os
import threading
import wave

import numpy as np

try:
    from faster_whisper import WhisperModel
except ImportError as exc:  # pragma: no cover - optional dependency
    raise ImportError(
        "faster-whisper is required for local whisper transcription. "
        "Install with `pip install faster-whisper` and provide a local model path."
    ) from exc

# Biases decoding toward the command vocabulary (squares, pieces, card numbers).
COMMAND_PROMPT = (
    "move pawn to e4. knight from b1 to c3. flip card seven. "
    "settings. vibration off. speed slow. new game."
)


class WhisperLocalEngine:
    """Run Whisper locally on CPU/GPU for short spoken commands."""

    def __init__(
        self,
        model_path: str | None = None,
        device: str | None = None,
        compute_type: str | None = None,
        language: str | None = None,
        sample_rate: int = 16000,
    ) -> None:
        self.model_path = model_path or os.getenv("LOCAL_WHISPER_MODEL_PATH", "small")
        self.device = device or os.getenv("LOCAL_WHISPER_DEVICE", "cpu")
        self.compute_type = compute_type or os.getenv("LOCAL_WHISPER_COMPUTE_TYPE", "int8")
        self.language = language or os.getenv("LOCAL_WHISPER_LANGUAGE", "en")
        self.sample_rate = sample_rate
        self._model: WhisperModel | None = None
        self._lock = threading.Lock()

    def _ensure_model(self) -> WhisperModel:
        if self._model is None:
            self._model = WhisperModel(
                self.model_path, device=self.device, compute_type=self.compute_type
            )
        return self._model

    def transcribe_wav_bytes(self, wav_bytes: bytes) -> str:
        """Run local Whisper on WAV-formatted bytes and return text."""
        if not wav_bytes:
            return ""

        wav_buffer = io.BytesIO(wav_bytes)
        with wave.open(wav_buffer, "rb") as wav_file:
            n_channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            frame_rate = wav_file.getframerate()
            n_frames = wav_file.getnframes()
            if n_frames == 0:
                return ""
            raw_audio = wav_file.readframes(n_frames)

        audio_float = pcm_to_float(raw_audio, sample_width)
        if n_channels == 2:
            audio_float = audio_float.reshape(-1, 2).mean(axis=1)
        if frame_rate != self.sample_rate:
            audio_float = resample(audio_float, frame_rate, self.sample_rate)
        return self.transcribe_array(audio_float)

    def transcribe_array(self, audio_float: np.ndarray) -> str:
        """Transcribe a float32 mono array sampled at self.sample_rate."""
        if len(audio_float) == 0:
            return ""

        with self._lock:
            model = self._ensure_model()
            segments, _info = model.transcribe(
                audio=audio_float,
                language=self.language,
                beam_size=3,
                vad_filter=True,
                initial_prompt=COMMAND_PROMPT,
            )
            parts = [seg.text.strip() for seg in segments if seg.text]
        return " ".join(parts).strip()


def pcm_to_float(raw_audio: bytes, sample_width: int) -> np.ndarray:
    """Convert little-endian PCM bytes to float32 in [-1, 1]."""
    if sample_width == 1:
        audio_uint8 = np.frombuffer(raw_audio, dtype=np.uint8)
        return (audio_uint8.astype(np.float32) - 128) / 128.0
    audio_int16 = np.frombuffer(raw_audio, dtype=np.int16)
    return audio_int16.astype(np.float32) / 32768.0


def resample(audio: np.ndarray, orig_sr: int, target_sr: int) -> np.ndarray:
    """Simple resampling using linear interpolation."""
    if orig_sr == target_sr:
        return audio

    target_length = int(len(audio) / orig_sr * target_sr)
    if target_length == 0:
        return audio

    indices = np.linspace(0, len(audio) - 1, target_length)
    resampled = np.interp(indices, np.arange(len(audio)), audio)
    return resampled.astype(np.float32)
