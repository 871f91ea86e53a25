"""Keyword grammars used to classify spoken transcripts into command categories."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class CommandCategory(str, Enum):
    NAVIGATION = "navigation"
    CHESS = "chess"
    MEMORY = "memory"
    SETTINGS = "settings"


# Matching is plain substring containment. The single letters and digits in the
# chess set are loose on purpose: recognizers mangle board coordinates.
COMMAND_GRAMMAR: Mapping[CommandCategory, tuple[str, ...]] = MappingProxyType(
    {
        CommandCategory.NAVIGATION: (
            "start", "home", "games", "settings", "exit", "back", "chess", "memory", "play",
        ),
        CommandCategory.CHESS: (
            "move", "pawn", "knight", "bishop", "rook", "queen", "king",
            "a", "b", "c", "d", "e", "f", "g", "h",
            "1", "2", "3", "4", "5", "6", "7", "8", "to",
        ),
        CommandCategory.MEMORY: (
            "flip", "card", "one", "two", "three", "four", "five", "six",
            "seven", "eight", "nine", "ten", "eleven", "twelve", "reset", "new game",
        ),
        CommandCategory.SETTINGS: (
            "volume", "up", "down", "vibration", "on", "off", "voice", "speed",
            "slow", "normal", "fast", "save",
        ),
    }
)


def keywords_for(category: CommandCategory | str) -> tuple[str, ...]:
    return COMMAND_GRAMMAR[CommandCategory(category)]


def matched_keyword(
    transcript: str,
    category: CommandCategory | str,
    grammar: Mapping[CommandCategory, tuple[str, ...]] = COMMAND_GRAMMAR,
) -> str | None:
    """Return the first keyword of category contained in transcript, if any."""
    for keyword in grammar[CommandCategory(category)]:
        if keyword in transcript:
            return keyword
    return None


def matches(
    transcript: str,
    category: CommandCategory | str,
    grammar: Mapping[CommandCategory, tuple[str, ...]] = COMMAND_GRAMMAR,
) -> bool:
    return matched_keyword(transcript, category, grammar) is not None


def classify(
    transcript: str,
    grammar: Mapping[CommandCategory, tuple[str, ...]] = COMMAND_GRAMMAR,
) -> list[CommandCategory]:
    """Return every category whose grammar matches, in declaration order."""
    return [category for category in grammar if matches(transcript, category, grammar)]
