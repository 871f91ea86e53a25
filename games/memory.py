"""Memory card matching driven by "flip card N" commands or direct flips."""

from __future__ import annotations

import random
import threading
from dataclasses import asdict, dataclass

from feedback_module.haptics import HapticFeedback
from utils.log_utils import log
from utils.scheduler import ScheduledCall, Scheduler
from voice_module.speech_output import SpeechOutput
from voice_module.voice_utils import NUMBER_WORDS, word_to_number

CARD_SYMBOLS: tuple[tuple[str, str], ...] = (
    ("🌟", "star"),
    ("🌙", "moon"),
    ("🌈", "rainbow"),
    ("🌺", "flower"),
    ("🍎", "apple"),
    ("🐢", "turtle"),
)

MATCH_DELAY_SECS = 1.0
MISMATCH_DELAY_SECS = 1.5
COMPLETION_DELAY_SECS = 1.0
MATCH_PULSE_MS = 100
RESET_PULSE_MS = 100

START_MESSAGE = "Memory game started. Flip cards by saying flip card 1 or by touching them."


@dataclass
class Card:
    id: int
    symbol: str
    description: str
    face_up: bool = False
    matched: bool = False


def build_deck(rng: random.Random, symbols: tuple[tuple[str, str], ...] = CARD_SYMBOLS) -> list[Card]:
    """Two copies of every symbol, uniformly shuffled (Fisher-Yates)."""
    cards = [
        Card(id=index, symbol=symbol, description=description)
        for index, (symbol, description) in enumerate(symbols + symbols)
    ]
    rng.shuffle(cards)
    return cards


def parse_card_number(transcript: str, deck_size: int) -> int | None:
    """Return the 1-based card number spoken in transcript, or None.

    Words are scanned left to right. A number word ends the scan even when out
    of range; a numeral only counts when it falls inside the deck.
    """
    for word in transcript.split():
        if word in NUMBER_WORDS:
            number = word_to_number(word)
            return number if number is not None and 1 <= number <= deck_size else None
        value = word_to_number(word)
        if value is not None and 1 <= value <= deck_size:
            return value
    return None


class MemoryGame:
    def __init__(
        self,
        speech: SpeechOutput,
        haptics: HapticFeedback,
        scheduler: Scheduler,
        *,
        rng: random.Random | None = None,
        symbols: tuple[tuple[str, str], ...] = CARD_SYMBOLS,
    ) -> None:
        self.speech = speech
        self.haptics = haptics
        self.scheduler = scheduler
        self.symbols = symbols
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._pending: list[ScheduledCall] = []
        # Bumped on every new deck; delayed callbacks from an older deck do nothing.
        self._epoch = 0
        self.cards: list[Card] = []
        self.flipped: list[int] = []
        self.matched_pairs = 0
        self.moves = 0
        self.new_game()

    @property
    def total_pairs(self) -> int:
        return len(self.symbols)

    @property
    def completed(self) -> bool:
        return self.matched_pairs == self.total_pairs

    def new_game(self) -> None:
        with self._lock:
            self._epoch += 1
            for call in self._pending:
                call.cancel()
            self._pending.clear()
            self.cards = build_deck(self._rng, self.symbols)
            self.flipped = []
            self.matched_pairs = 0
            self.moves = 0

    def announce_start(self) -> None:
        self.speech.speak(START_MESSAGE)

    def reset(self) -> None:
        self.new_game()
        self.speech.speak("Game reset.")
        self.haptics.pulse(RESET_PULSE_MS)
        self.announce_start()

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "cards": [
                    asdict(card) if card.face_up or card.matched
                    else {"id": card.id, "face_up": False, "matched": False}
                    for card in self.cards
                ],
                "flipped": list(self.flipped),
                "matched_pairs": self.matched_pairs,
                "total_pairs": self.total_pairs,
                "moves": self.moves,
            }

    def handle_command(self, transcript: str) -> bool:
        """Interpret one final transcript. Returns True when the deck changed."""
        changed = False
        with self._lock:
            if "flip" in transcript or "card" in transcript:
                number = parse_card_number(transcript, len(self.cards))
                if number is None:
                    self.speech.speak("Please specify a valid card number.")
                else:
                    changed = self.flip(number - 1)
            if "reset" in transcript or "new game" in transcript:
                self.reset()
                changed = True
        return changed

    def flip(self, index: int) -> bool:
        with self._lock:
            if not 0 <= index < len(self.cards):
                self.speech.speak("Please specify a valid card number.")
                return False
            card = self.cards[index]
            if card.face_up or card.matched:
                self.speech.speak("Card already flipped or matched.")
                return False
            if len(self.flipped) >= 2:
                # Two cards still waiting to be resolved: ignore quietly.
                return False

            self.haptics.pulse()
            self.speech.speak(f"Card {index + 1}: {card.description}")
            card.face_up = True
            self.flipped.append(index)

            if len(self.flipped) == 2:
                self.moves += 1
                first, second = self.flipped
                if self.cards[first].symbol == self.cards[second].symbol:
                    self._schedule(MATCH_DELAY_SECS, self._resolve_match, first, second)
                else:
                    self._schedule(MISMATCH_DELAY_SECS, self._resolve_mismatch, first, second)
            return True

    def _schedule(self, delay: float, callback, *args) -> None:
        self._pending = [call for call in self._pending if call.pending]
        self._pending.append(self.scheduler.call_later(delay, callback, self._epoch, *args))

    def _resolve_match(self, epoch: int, first: int, second: int) -> None:
        with self._lock:
            if epoch != self._epoch:
                return
            self.cards[first].matched = True
            self.cards[second].matched = True
            self.flipped = []
            self.matched_pairs += 1
            log("MEMORY", f"match {first + 1}/{second + 1} ({self.matched_pairs}/{self.total_pairs})")
            self.speech.speak("Match found!")
            self.haptics.pulse(MATCH_PULSE_MS)
            if self.completed:
                self._schedule(COMPLETION_DELAY_SECS, self._announce_completion)

    def _resolve_mismatch(self, epoch: int, first: int, second: int) -> None:
        with self._lock:
            if epoch != self._epoch:
                return
            self.cards[first].face_up = False
            self.cards[second].face_up = False
            self.flipped = []
            self.speech.speak("No match.")

    def _announce_completion(self, epoch: int) -> None:
        with self._lock:
            if epoch != self._epoch:
                return
            self.speech.speak(f"Congratulations! You completed the game in {self.moves} moves.")
