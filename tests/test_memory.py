"""Tests for the memory card game."""

import random

import pytest

from games.memory import (
    CARD_SYMBOLS,
    START_MESSAGE,
    MemoryGame,
    build_deck,
    parse_card_number,
)


@pytest.fixture
def game(speech, haptics, scheduler, rng):
    return MemoryGame(speech, haptics, scheduler, rng=rng)


def _pair(game):
    """Indices of two cards with the same symbol."""
    first = 0
    second = next(
        i for i, card in enumerate(game.cards) if i != first and card.symbol == game.cards[first].symbol
    )
    return first, second


def _mismatch(game):
    """Indices of two cards with different symbols."""
    first = 0
    second = next(i for i, card in enumerate(game.cards) if card.symbol != game.cards[first].symbol)
    return first, second


def _pairs(game):
    by_symbol = {}
    for index, card in enumerate(game.cards):
        by_symbol.setdefault(card.symbol, []).append(index)
    return list(by_symbol.values())


class TestDeck:
    """Test suite for deck construction."""

    def test_two_of_each_symbol(self):
        """Test the deck holds every symbol exactly twice."""
        cards = build_deck(random.Random(7))
        assert len(cards) == 12
        symbols = [card.symbol for card in cards]
        for symbol, _description in CARD_SYMBOLS:
            assert symbols.count(symbol) == 2
        assert all(not card.face_up and not card.matched for card in cards)

    def test_shuffle_uses_rng(self):
        """Test the same seed gives the same order."""
        first = [card.id for card in build_deck(random.Random(3))]
        second = [card.id for card in build_deck(random.Random(3))]
        assert first == second


class TestParseCardNumber:
    """Test suite for parse_card_number."""

    @pytest.mark.parametrize(
        "transcript,expected",
        [
            ("flip card three", 3),
            ("flip card 12", 12),
            ("flip card 13", None),
            ("flip card 0 5", 5),
            ("card twelve 3", 12),
            ("flip card", None),
        ],
    )
    def test_parse(self, transcript, expected):
        assert parse_card_number(transcript, 12) == expected

    def test_number_word_out_of_range_ends_scan(self):
        """Test an out-of-range number word is not skipped over."""
        assert parse_card_number("flip card ten 2", 6) is None


class TestFlip:
    """Test suite for flipping and resolving cards."""

    def test_first_flip_announces_card(self, game, speech, vibrator):
        """Test a flip reveals the card and describes it."""
        assert game.flip(0)
        assert game.cards[0].face_up
        assert game.flipped == [0]
        assert speech.last_spoken() == f"Card 1: {game.cards[0].description}"
        assert vibrator.pulses == [40]

    def test_match_resolves_after_delay(self, game, speech, scheduler, vibrator):
        """Test a matching pair is marked after one second."""
        first, second = _pair(game)
        game.flip(first)
        game.flip(second)
        assert game.moves == 1

        scheduler.advance(0.5)
        assert not game.cards[first].matched

        scheduler.advance(0.5)
        assert game.cards[first].matched and game.cards[second].matched
        assert game.matched_pairs == 1
        assert game.flipped == []
        assert speech.last_spoken() == "Match found!"
        assert vibrator.pulses[-1] == 100

    def test_mismatch_turns_cards_back(self, game, speech, scheduler):
        """Test a mismatched pair is hidden again after 1.5 seconds."""
        first, second = _mismatch(game)
        game.flip(first)
        game.flip(second)

        scheduler.advance(1.0)
        assert game.cards[first].face_up

        scheduler.advance(0.5)
        assert not game.cards[first].face_up
        assert not game.cards[second].face_up
        assert game.flipped == []
        assert speech.last_spoken() == "No match."

    def test_third_flip_ignored_while_pair_pending(self, game, speech, scheduler):
        """Test flips are ignored quietly until the pair resolves."""
        first, second = _mismatch(game)
        third = next(i for i in range(len(game.cards)) if i not in (first, second))
        game.flip(first)
        game.flip(second)
        before = speech.last_spoken()

        assert not game.flip(third)
        assert speech.last_spoken() == before
        assert not game.cards[third].face_up

        scheduler.advance(1.5)
        assert game.flip(third)

    def test_flip_face_up_card(self, game, speech):
        """Test flipping a revealed card is refused with feedback."""
        game.flip(0)
        assert not game.flip(0)
        assert speech.last_spoken() == "Card already flipped or matched."
        assert game.flipped == [0]

    def test_flip_out_of_range(self, game, speech):
        assert not game.flip(12)
        assert speech.last_spoken() == "Please specify a valid card number."

    def test_completion_announced(self, game, speech, scheduler):
        """Test the final match is followed by a congratulation."""
        for first, second in _pairs(game):
            game.flip(first)
            game.flip(second)
            scheduler.advance(1.0)

        assert game.completed
        assert speech.last_spoken() == "Match found!"

        scheduler.advance(1.0)
        assert speech.last_spoken() == "Congratulations! You completed the game in 6 moves."


class TestCommands:
    """Test suite for voice commands."""

    def test_flip_by_voice(self, game, speech):
        assert game.handle_command("flip card three")
        assert game.cards[2].face_up
        assert speech.last_spoken() == f"Card 3: {game.cards[2].description}"

    def test_missing_number(self, game, speech):
        """Test a flip without a usable number prompts for one."""
        assert not game.handle_command("flip card")
        assert speech.last_spoken() == "Please specify a valid card number."
        assert not game.handle_command("flip card 13")
        assert speech.last_spoken() == "Please specify a valid card number."

    def test_reset(self, game, speech, vibrator):
        """Test reset deals a fresh deck and announces it."""
        game.flip(0)
        assert game.handle_command("reset")

        assert game.flipped == []
        assert game.moves == 0
        assert all(not card.face_up for card in game.cards)
        assert list(speech.history)[-2:] == ["Game reset.", START_MESSAGE]
        assert vibrator.pulses[-1] == 100

    def test_reset_discards_pending_resolution(self, game, speech, scheduler):
        """Test a timer from the previous deck does nothing after reset."""
        first, second = _mismatch(game)
        game.flip(first)
        game.flip(second)
        game.reset()

        game.flip(first)
        scheduler.advance(5.0)

        assert game.cards[first].face_up
        assert "No match." not in speech.history
        assert game.flipped == [first]


class TestSnapshot:
    """Test suite for the public game state."""

    def test_hides_face_down_symbols(self, game):
        game.flip(0)
        snapshot = game.snapshot()
        assert snapshot["cards"][0]["symbol"] == game.cards[0].symbol
        assert "symbol" not in snapshot["cards"][1]
        assert snapshot["total_pairs"] == 6
        assert snapshot["flipped"] == [0]
