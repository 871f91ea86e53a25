"""Utility helpers for voice processing."""

import re

NUMBER_WORDS = (
    "one", "two", "three", "four", "five", "six",
    "seven", "eight", "nine", "ten", "eleven", "twelve",
)

_LEADING_DIGITS = re.compile(r"^\d+")


def normalize_phrase(phrase: str) -> str:
    """Normalize spoken text for easier matching."""
    return re.sub(r"\s+", " ", phrase.strip().lower())


def word_to_number(word: str) -> int | None:
    """Return 1..12 for a number word, the leading integer of a numeral, else None.

    "3" and "3rd" both give 3; "three" gives 3.
    """
    if word in NUMBER_WORDS:
        return NUMBER_WORDS.index(word) + 1
    digits = _LEADING_DIGITS.match(word)
    if digits:
        return int(digits.group())
    return None
