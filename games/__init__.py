"""Chess and memory games with their voice command interpreters."""

from games.chess import ChessGame, MoveCommand, parse_move
from games.memory import Card, MemoryGame, parse_card_number

__all__ = [
    "Card",
    "ChessGame",
    "MemoryGame",
    "MoveCommand",
    "parse_card_number",
    "parse_move",
]
