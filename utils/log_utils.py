"""Timestamped, tagged console logging shared by the voice, game and API layers.

Lines look like ``[2025-01-01 12:00:00][VOICE][WARN] text``. Calls to log()
below the configured level are dropped; DEEP tracing goes through
settings_store.deep_log instead.
"""

from __future__ import annotations

import builtins
import re
import threading
import time
from typing import Any

LEVELS = ("DEEP", "DEBUG", "INFO", "WARN", "ERROR")

_TAG = re.compile(r"\s*\[([^\[\]]*)\]")
_print_lock = threading.Lock()
_min_level = "INFO"


def set_level(level: str) -> str:
    """Set the lowest level log() prints; unknown names fall back to INFO."""
    global _min_level
    level = str(level or "").upper()
    _min_level = level if level in LEVELS else "INFO"
    return _min_level


def get_level() -> str:
    return _min_level


def split_tags(message: str) -> tuple[list[str], str]:
    tags: list[str] = []
    pos = 0
    while True:
        match = _TAG.match(message, pos)
        if not match or not match.group(1).strip():
            break
        tags.append(match.group(1).strip())
        pos = match.end()
    return tags, message[pos:].strip()


def format_message(message: str) -> str:
    """Normalize "[LEVEL][SYSTEM] text" and "[SYSTEM][LEVEL] text" to one order."""
    tags, text = split_tags(message)
    system, variant = "APP", None
    if tags and tags[0].upper() in LEVELS:
        variant = tags.pop(0).upper()
        system = tags.pop(0) if tags else "APP"
    elif tags:
        system = tags.pop(0)
        variant = tags.pop(0).upper() if tags else None
    head = f"[{system}][{variant}]" if variant else f"[{system}]"
    extra = f" [{' '.join(tags)}]" if tags else ""
    body = f" {text}" if text else ""
    return f"{head}{extra}{body}"


def tprint(*args: Any, **kwargs: Any) -> None:
    """Print with a timestamp prefix and normalized tag order.

    Recognizer callbacks, timers and API workers all log, so lines are
    written under a lock to keep them whole.
    """
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    formatted = format_message(" ".join(str(arg) for arg in args))
    with _print_lock:
        builtins.print(f"[{timestamp}]{formatted}", **kwargs)


def log(system: str, message: str, variant: str | None = None) -> None:
    """Log with explicit system and optional variant (INFO when omitted)."""
    level = (variant or "INFO").upper()
    if level in LEVELS and LEVELS.index(level) < LEVELS.index(_min_level):
        return
    if variant:
        tprint(f"[{system}][{level}] {message}")
    else:
        tprint(f"[{system}] {message}")
