"""In-memory cache for persisted accessibility settings."""

from __future__ import annotations

import os
import threading
from typing import Any

from utils.file_utils import load_json, save_json
from utils.log_utils import tprint

DEFAULT_SETTINGS: dict[str, Any] = {
    "vibration_enabled": True,
    "vibration_intensity": 1.0,
    "voice_index": None,
    "speech_rate": 1.0,
    "log_level": "INFO",
}

_lock = threading.Lock()
_settings_cache: dict[str, Any] = {}


def settings_path() -> str:
    return os.getenv("APP_SETTINGS_PATH", "config/app_settings.json")


def refresh_settings() -> dict[str, Any]:
    """Reload settings from disk and replace the cache."""
    data = load_json(settings_path())
    merged = dict(DEFAULT_SETTINGS)
    merged.update({key: value for key, value in data.items() if key in DEFAULT_SETTINGS})
    with _lock:
        _settings_cache.clear()
        _settings_cache.update(merged)
        return dict(_settings_cache)


def get_settings() -> dict[str, Any]:
    """Return a copy of the cached settings."""
    with _lock:
        cached = dict(_settings_cache)
    if not cached:
        return refresh_settings()
    return cached


def get_setting(key: str, default: Any = None) -> Any:
    return get_settings().get(key, default)


def update_settings(**changes: Any) -> dict[str, Any]:
    """Merge known keys into the cache and write the result to disk.

    Unknown keys raise ValueError so a typo never silently creates a setting.
    """
    unknown = set(changes) - set(DEFAULT_SETTINGS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    current = get_settings()
    current.update(changes)
    with _lock:
        _settings_cache.clear()
        _settings_cache.update(current)
    save_json(settings_path(), current)
    return dict(current)


def clear_cache() -> None:
    with _lock:
        _settings_cache.clear()


def is_deep_logging() -> bool:
    """Return True when log_level requests deep tracing."""
    level = str(get_settings().get("log_level", "")).upper()
    return level in {"DEEP"}


def deep_log(message: str) -> None:
    """Log only when deep tracing is enabled."""
    if is_deep_logging():
        tprint(message)
