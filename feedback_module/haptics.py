"""Haptic pulses scaled by the user's vibration settings."""

from __future__ import annotations

from typing import Protocol

from utils.log_utils import log

DEFAULT_PULSE_MS = 40
MIN_INTENSITY = 0.5
MAX_INTENSITY = 2.0


class Vibrator(Protocol):
    def supported(self) -> bool:
        ...

    def pulse(self, duration_ms: int) -> None:
        ...


class NullVibrator:
    """Host without a vibration motor."""

    def supported(self) -> bool:
        return False

    def pulse(self, duration_ms: int) -> None:
        return None


class LogVibrator:
    """Records pulses in the log; used on desktops and in demos."""

    def __init__(self) -> None:
        self.pulses: list[int] = []

    def supported(self) -> bool:
        return True

    def pulse(self, duration_ms: int) -> None:
        self.pulses.append(duration_ms)
        log("HAPTICS", f"pulse {duration_ms} ms")


class HapticFeedback:
    def __init__(self, vibrator: Vibrator, *, enabled: bool = True, intensity: float = 1.0) -> None:
        self.vibrator = vibrator
        self.enabled = enabled
        self.intensity = intensity if MIN_INTENSITY <= intensity <= MAX_INTENSITY else 1.0

    def supported(self) -> bool:
        return self.vibrator.supported()

    def pulse(self, duration_ms: float = DEFAULT_PULSE_MS) -> bool:
        if not self.enabled or not self.vibrator.supported():
            return False
        scaled = round(duration_ms * self.intensity)
        try:
            self.vibrator.pulse(scaled)
        except OSError as exc:
            log("HAPTICS", f"Error triggering haptic feedback: {exc}", "ERROR")
            return False
        return True

    def set_enabled(self, enabled: bool) -> bool:
        self.enabled = bool(enabled)
        return True

    def set_intensity(self, intensity: float) -> bool:
        if MIN_INTENSITY <= intensity <= MAX_INTENSITY:
            self.intensity = intensity
            return True
        return False
