"""Tests for chess move parsing and the chess game interpreter."""

import pytest

from games.chess import (
    BLACK,
    INITIAL_BOARD,
    WHITE,
    ChessGame,
    MoveCommand,
    parse_move,
    parse_square,
    piece_name,
)


@pytest.fixture
def game(speech, haptics):
    return ChessGame(speech, haptics)


def _clear(game):
    game.board = [[""] * 8 for _ in range(8)]


def _place(game, square, code):
    row, col = parse_square(square)
    game.board[row][col] = code


class TestParseMove:
    """Test suite for parse_move."""

    def test_piece_to_square(self):
        """Test the short "<piece> to <square>" form."""
        command = parse_move("pawn to e4")
        assert command == MoveCommand(piece="pawn", to_square=(4, 4))
        assert not command.has_source

    def test_move_with_source(self):
        """Test the explicit form with a starting square."""
        command = parse_move("move knight from g1 to f3")
        assert command.piece == "knight"
        assert (command.from_row, command.from_col) == (7, 6)
        assert command.to_square == (5, 5)
        assert command.has_source

    def test_spaced_coordinates(self):
        """Test recognizers splitting a square into two words."""
        command = parse_move("move pawn e 2 to e 4")
        assert command.has_source
        assert command.to_square == (4, 4)

    def test_bare_squares(self):
        """Test "e2 to e4" without a piece name."""
        command = parse_move("e2 to e4")
        assert command.piece is None
        assert (command.from_row, command.from_col) == (6, 4)

    def test_source_file_only(self):
        """Test a starting file without a rank."""
        command = parse_move("pawn c to d5")
        assert command.from_col == 2
        assert command.from_row is None
        assert not command.has_source

    def test_no_move(self):
        """Test text without a destination square."""
        assert parse_move("move the pawn") is None
        assert parse_move("hello") is None


class TestHelpers:
    """Test suite for square and piece helpers."""

    def test_parse_square(self):
        assert parse_square("a8") == (0, 0)
        assert parse_square("H1") == (7, 7)
        with pytest.raises(ValueError):
            parse_square("i9")

    def test_piece_name(self):
        assert piece_name("wn") == "white knight"
        assert piece_name("bq") == "black queen"
        assert piece_name("") == "empty"


class TestVoiceMoves:
    """Test suite for voice commands on the board."""

    def test_pawn_double_step_from_start(self, game, speech, vibrator):
        """Test "pawn to e4" finds the e2 pawn."""
        assert game.handle_command("pawn to e4")

        assert game.piece_at("e4") == "wp"
        assert game.piece_at("e2") == ""
        assert game.turn == BLACK
        assert speech.last_spoken() == "White pawn from e2 to e4. Black to move."
        assert vibrator.pulses[-1] == 60

    def test_turns_alternate(self, game, speech):
        """Test the next pawn move is for black."""
        game.handle_command("pawn to e4")
        assert game.handle_command("pawn to e5")
        assert game.piece_at("e5") == "bp"
        assert speech.last_spoken() == "Black pawn from e7 to e5. White to move."
        assert game.turn == WHITE

    def test_unreachable_pawn_square(self, game, speech):
        """Test a pawn destination no pawn can reach."""
        assert not game.handle_command("pawn to e5")
        assert speech.last_spoken() == "No valid pawn can make that move."
        assert game.board == [list(row) for row in INITIAL_BOARD]

    def test_double_step_blocked(self, game, speech):
        """Test the double step needs the skipped square empty."""
        _place(game, "e3", "bn")
        assert not game.handle_command("pawn to e4")
        assert speech.last_spoken() == "No valid pawn can make that move."

    def test_diagonal_pawn_move_is_not_a_candidate(self, game, speech):
        """Test pawns only advance straight; a diagonal target has no candidate."""
        _clear(game)
        _place(game, "e4", "wp")
        _place(game, "d5", "bp")

        assert game.pawn_candidates(parse_square("d5")) == []
        assert not game.handle_command("pawn to d5")

        assert speech.last_spoken() == "No valid pawn can make that move."
        assert game.piece_at("d5") == "bp"
        assert game.piece_at("e4") == "wp"
        assert game.turn == WHITE

    def test_two_candidates_are_refused(self, game, speech, monkeypatch):
        """Test the interpreter never guesses between two pawn candidates."""
        monkeypatch.setattr(game, "pawn_candidates", lambda target: [(6, 3), (6, 4)])

        assert not game.apply_move(MoveCommand(piece="pawn", to_square=parse_square("e4")))

        assert speech.last_spoken() == (
            "Multiple pawns can make that move. Please specify which pawn to move."
        )
        assert game.board == [list(row) for row in INITIAL_BOARD]
        assert game.turn == WHITE

    def test_source_file_resolves_ambiguity(self, game, speech, monkeypatch):
        """Test naming the file picks one of several candidates."""
        monkeypatch.setattr(game, "pawn_candidates", lambda target: [(6, 3), (6, 4)])

        assert game.handle_command("pawn d to e4")

        assert game.piece_at("e4") == "wp"
        assert game.piece_at("d2") == ""
        assert game.piece_at("e2") == "wp"
        assert speech.last_spoken() == "White pawn from d2 to e4. Black to move."

    def test_full_move(self, game, speech):
        """Test a move naming both squares."""
        assert game.handle_command("move knight from g1 to f3")
        assert game.piece_at("f3") == "wn"
        assert speech.last_spoken() == "White knight from g1 to f3. Black to move."

    def test_full_move_announces_board_piece(self, game, speech):
        """Test the announced piece is the one on the board, not the spoken word."""
        assert game.handle_command("e2 to e4")
        assert speech.last_spoken() == "White pawn from e2 to e4. Black to move."

    def test_full_move_from_opponent_square(self, game, speech):
        """Test moving a piece of the wrong color is rejected."""
        assert not game.handle_command("move knight from g8 to f6")
        assert speech.last_spoken() == "No valid piece at the starting position."
        assert game.piece_at("g8") == "bn"

    def test_full_move_from_empty_square(self, game, speech):
        assert not game.handle_command("move queen from d4 to d5")
        assert speech.last_spoken() == "No valid piece at the starting position."

    def test_piece_without_source(self, game, speech):
        """Test non-pawn pieces need a starting square."""
        assert not game.handle_command("knight to f3")
        assert speech.last_spoken() == "Please specify which knight to move using its position."

    def test_unparseable_move(self, game, speech):
        """Test a move word without a destination."""
        assert not game.handle_command("move the pawn")
        assert speech.last_spoken() == "Invalid move. Please try again."

    def test_unrelated_text_is_silent(self, game, speech):
        """Test text matched only by loose letters is ignored quietly."""
        assert not game.handle_command("hello there")
        assert speech.last_spoken() is None

    def test_reset(self, game, speech, vibrator):
        """Test "reset" restores the starting position."""
        game.handle_command("pawn to e4")
        assert game.handle_command("reset the board")

        assert game.board == [list(row) for row in INITIAL_BOARD]
        assert game.turn == WHITE
        assert speech.last_spoken() == "Game reset. White to move."
        assert vibrator.pulses[-1] == 100


class TestClicks:
    """Test suite for pointer input."""

    def test_select_then_move(self, game, speech):
        """Test two clicks move the selected piece."""
        assert not game.click_square("e2")
        assert speech.last_spoken() == "Selected white pawn at e2"
        assert game.snapshot()["selected"] == "e2"

        assert game.click_square("e4")
        assert game.piece_at("e4") == "wp"
        assert game.snapshot()["selected"] is None

    def test_click_opponent_piece(self, game, speech):
        assert not game.click_square("e7")
        assert speech.last_spoken() == "That's black pawn of the opponent"
        assert game.selected is None

    def test_click_empty_square(self, game, speech):
        assert not game.click_square("e4")
        assert speech.last_spoken() == "Empty square"

    def test_click_same_square_deselects(self, game):
        """Test clicking the selected square again cancels the selection."""
        game.click_square("e2")
        assert not game.click_square("e2")
        assert game.selected is None
        assert game.piece_at("e2") == "wp"

    def test_click_out_of_range(self, game):
        with pytest.raises(ValueError):
            game.click(8, 0)
