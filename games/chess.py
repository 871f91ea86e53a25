"""Voice and pointer control for a simplified chess board.

Moves are relocations only: there is no check, castling or en passant logic
and a move onto an occupied square simply overwrites it. The interesting part
is turning loose transcripts into a move and refusing to guess when the
transcript is ambiguous.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Optional

from feedback_module.haptics import HapticFeedback
from utils.log_utils import log
from voice_module.speech_output import SpeechOutput

COLUMNS = "abcdefgh"
WHITE = "white"
BLACK = "black"

PIECE_LETTERS = {
    "pawn": "p",
    "rook": "r",
    "knight": "n",
    "bishop": "b",
    "queen": "q",
    "king": "k",
}
PIECE_NAMES = {letter: name for name, letter in PIECE_LETTERS.items()}

INITIAL_BOARD: tuple[tuple[str, ...], ...] = (
    ("br", "bn", "bb", "bq", "bk", "bb", "bn", "br"),
    ("bp",) * 8,
    ("",) * 8,
    ("",) * 8,
    ("",) * 8,
    ("",) * 8,
    ("wp",) * 8,
    ("wr", "wn", "wb", "wq", "wk", "wb", "wn", "wr"),
)

MOVE_PULSE_MS = 60
RESET_PULSE_MS = 100

_FROM_TO = (
    r"(?:(?:from\s+)?(?P<from_col>[a-h])\s?(?P<from_row>[1-8])?\s+)?"
    r"to\s+(?P<to_col>[a-h])\s?(?P<to_row>[1-8])\b"
)

# Ordered alternatives, first match wins: the explicit "move" form, then the
# loose "<piece> ... to <square>" form, then bare "e2 to e4".
MOVE_PATTERNS = (
    re.compile(r"\bmove\s+(?:the\s+)?(?P<piece>[a-z]+)\s+" + _FROM_TO),
    re.compile(r"\b(?P<piece>[a-z]+)\s+" + _FROM_TO),
    re.compile(
        r"\b(?P<from_col>[a-h])\s?(?P<from_row>[1-8])\s+to\s+(?P<to_col>[a-h])\s?(?P<to_row>[1-8])\b"
    ),
)

_MENTIONS_MOVE = re.compile(r"\b(?:move|pawn|knight|bishop|rook|queen|king)\b")


@dataclass(frozen=True)
class MoveCommand:
    """Structured move extracted from a transcript."""

    piece: Optional[str]
    to_square: tuple[int, int]
    from_col: Optional[int] = None
    from_row: Optional[int] = None

    @property
    def has_source(self) -> bool:
        return self.from_col is not None and self.from_row is not None


def square_to_index(col: str, rank: str | int) -> tuple[int, int]:
    """Convert ("e", "4") to (row, col) board indices; row 0 is rank 8."""
    return 8 - int(rank), COLUMNS.index(col)


def index_to_square(row: int, col: int) -> str:
    return f"{COLUMNS[col]}{8 - row}"


def parse_square(square: str) -> tuple[int, int]:
    text = square.strip().lower().replace(" ", "")
    if len(text) != 2 or text[0] not in COLUMNS or text[1] not in "12345678":
        raise ValueError(f"Invalid square '{square}'")
    return square_to_index(text[0], text[1])


def piece_name(code: str) -> str:
    if not code or len(code) < 2:
        return "empty"
    color = WHITE if code[0] == "w" else BLACK
    kind = PIECE_NAMES.get(code[1])
    if kind is None:
        return "unknown piece"
    return f"{color} {kind}"


def parse_move(transcript: str) -> MoveCommand | None:
    for pattern in MOVE_PATTERNS:
        match = pattern.search(transcript)
        if not match:
            continue
        groups = match.groupdict()
        to_square = square_to_index(groups["to_col"], groups["to_row"])
        from_col = COLUMNS.index(groups["from_col"]) if groups.get("from_col") else None
        from_row = 8 - int(groups["from_row"]) if groups.get("from_row") else None
        return MoveCommand(
            piece=groups.get("piece"),
            to_square=to_square,
            from_col=from_col,
            from_row=from_row,
        )
    return None


class ChessGame:
    """Board state plus the voice and click interpreters that mutate it."""

    def __init__(self, speech: SpeechOutput, haptics: HapticFeedback) -> None:
        self.speech = speech
        self.haptics = haptics
        self._lock = threading.RLock()
        self.board: list[list[str]] = []
        self.selected: tuple[int, int] | None = None
        self.turn = WHITE
        self.last_move = ""
        self.new_game()

    def new_game(self) -> None:
        with self._lock:
            self.board = [list(row) for row in INITIAL_BOARD]
            self.selected = None
            self.turn = WHITE
            self.last_move = ""

    def announce_start(self) -> None:
        self.speech.speak("Chess game started. White to move.")

    def announce_help(self) -> None:
        self.speech.speak("Say move pawn to e4 or similar to make a move.")

    def reset(self) -> None:
        self.new_game()
        self.speech.speak("Game reset. White to move.")
        self.haptics.pulse(RESET_PULSE_MS)

    def piece_at(self, square: str) -> str:
        row, col = parse_square(square)
        return self.board[row][col]

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "board": [list(row) for row in self.board],
                "turn": self.turn,
                "selected": index_to_square(*self.selected) if self.selected else None,
                "last_move": self.last_move,
            }

    def handle_command(self, transcript: str) -> bool:
        """Interpret one final transcript. Returns True when the board changed."""
        with self._lock:
            if "reset" in transcript or "new game" in transcript:
                self.reset()
                return True
            command = parse_move(transcript)
            if command is None:
                if _MENTIONS_MOVE.search(transcript):
                    return self._reject("Invalid move. Please try again.")
                return False
            return self.apply_move(command)

    def apply_move(self, command: MoveCommand) -> bool:
        with self._lock:
            if command.has_source:
                return self._apply_full_move(command)
            if command.piece == "pawn":
                return self._apply_pawn_move(command)
            if command.piece in PIECE_LETTERS:
                return self._reject(
                    f"Please specify which {command.piece} to move using its position."
                )
            return self._reject("Please name the piece and its position.")

    def click(self, row: int, col: int) -> bool:
        """Pointer input on one cell. Returns True when the board changed."""
        if not (0 <= row < 8 and 0 <= col < 8):
            raise ValueError(f"Cell out of range: ({row}, {col})")
        with self._lock:
            if self.selected is None:
                piece = self.board[row][col]
                if piece and piece[0] == self.turn[0]:
                    self.selected = (row, col)
                    self.speech.speak(f"Selected {piece_name(piece)} at {index_to_square(row, col)}")
                    self.haptics.pulse()
                elif piece:
                    self.speech.speak(f"That's {piece_name(piece)} of the opponent")
                else:
                    self.speech.speak("Empty square")
                return False

            source = self.selected
            self.selected = None
            if source == (row, col):
                return False
            self._execute_move(source, (row, col))
            return True

    def click_square(self, square: str) -> bool:
        return self.click(*parse_square(square))

    def _apply_full_move(self, command: MoveCommand) -> bool:
        source = (command.from_row, command.from_col)
        piece = self.board[source[0]][source[1]]
        if not piece or piece[0] != self.turn[0]:
            return self._reject("No valid piece at the starting position.")
        self._execute_move(source, command.to_square)
        return True

    def _apply_pawn_move(self, command: MoveCommand) -> bool:
        candidates = self.pawn_candidates(command.to_square)
        if command.from_col is not None:
            candidates = [square for square in candidates if square[1] == command.from_col]
        if len(candidates) == 1:
            self._execute_move(candidates[0], command.to_square)
            return True
        if len(candidates) > 1:
            return self._reject(
                "Multiple pawns can make that move. Please specify which pawn to move."
            )
        return self._reject("No valid pawn can make that move.")

    def pawn_candidates(self, target: tuple[int, int]) -> list[tuple[int, int]]:
        """Own pawns that can reach target by advancing straight ahead.

        White pawns move toward row 0, black pawns toward row 7. The double step
        is only available from the home rank and needs the skipped square empty.
        """
        to_row, to_col = target
        own = self.turn[0]
        pawn = f"{own}p"
        step = -1 if own == "w" else 1
        double_step_target_row = 4 if own == "w" else 3
        board = self.board
        candidates: list[tuple[int, int]] = []

        one_back = to_row - step
        if 0 <= one_back < 8 and board[one_back][to_col] == pawn:
            candidates.append((one_back, to_col))

        two_back = to_row - 2 * step
        if (
            to_row == double_step_target_row
            and board[two_back][to_col] == pawn
            and board[one_back][to_col] == ""
        ):
            candidates.append((two_back, to_col))
        return candidates

    def _execute_move(self, source: tuple[int, int], target: tuple[int, int]) -> None:
        piece = self.board[source[0]][source[1]]
        self.board[target[0]][target[1]] = piece
        self.board[source[0]][source[1]] = ""
        self.selected = None
        mover = self.turn
        self.turn = BLACK if mover == WHITE else WHITE

        move_name = (
            f"{piece_name(piece)} from {index_to_square(*source)} to {index_to_square(*target)}"
        )
        self.last_move = move_name
        log("CHESS", f"{move_name}")
        self.speech.speak(f"{move_name[0].upper()}{move_name[1:]}. {self.turn.capitalize()} to move.")
        self.haptics.pulse(MOVE_PULSE_MS)

    def _reject(self, message: str) -> bool:
        log("CHESS", f"rejected: {message}")
        self.speech.speak(message)
        return False
