"""Tests for the tic-tac-toe minimax AI."""

import pytest

from tictactoe.ai import OPENING_MOVE, MinimaxAI, choose_move, search
from tictactoe.game import (
    EMPTY,
    TicTacToeGame,
    apply_move,
    detect_verdict,
    empty_board,
    legal_moves,
    other_player,
)


def board_from(text: str):
    return tuple(EMPTY if c == "." else c for c in text)


def test_empty_board_opens_in_center():
    assert choose_move(empty_board(), "X") == OPENING_MOVE == 4
    assert choose_move(empty_board(), "O") == 4
    assert search(empty_board(), "X").score == 0


def test_blocks_opponent_line():
    board = board_from("XX.......")
    result = search(board, "O")
    assert result.move == 2
    # X still forks after the block, so the loss is only delayed
    assert result.score == -7


def test_takes_immediate_win_over_block():
    board = board_from("OO.XX....")
    result = search(board, "O")
    assert result.move == 2
    assert result.score == 10


def test_prefers_faster_win():
    # Cell 3 forks for a win two plies later, cell 8 wins at once
    board = board_from(".X..XXOO.")
    result = search(board, "O")
    assert result.move == 8
    assert result.score == 10


def test_full_board_has_no_move():
    board = board_from("XOXOXOOXO")
    result = search(board, "X")
    assert result.move is None
    assert choose_move(board, "O") is None


def test_terminal_board_with_free_cells_returns_legal_move():
    board = board_from("XXXOO....")
    assert detect_verdict(board).is_terminal
    assert choose_move(board, "O") in legal_moves(board)


def test_ties_go_to_lowest_index():
    # Every reply to a center opening draws except edges lose; corners tie at 0
    board = board_from("....X....")
    assert choose_move(board, "O") == 0


def _worst_case_for_computer(board, computer, to_move):
    """Explore every opponent reply; return the set of outcomes the computer reaches."""
    verdict = detect_verdict(board)
    if verdict.is_terminal:
        return {verdict.winner}
    if to_move == computer:
        move = choose_move(board, computer)
        assert board[move] == EMPTY
        return _worst_case_for_computer(
            apply_move(board, move, computer), computer, other_player(computer)
        )
    outcomes = set()
    for move in legal_moves(board):
        outcomes |= _worst_case_for_computer(
            apply_move(board, move, to_move), computer, computer
        )
    return outcomes


@pytest.mark.parametrize("computer", ["X", "O"])
def test_computer_never_loses(computer):
    outcomes = _worst_case_for_computer(empty_board(), computer, "X")
    assert other_player(computer) not in outcomes
    assert None in outcomes


def test_self_play_is_a_draw():
    game = TicTacToeGame()
    while not game.verdict.is_terminal:
        game.play_move(choose_move(game.board, game.current_player))
    assert game.drawn


def test_ai_requires_its_turn():
    game = TicTacToeGame()
    ai = MinimaxAI(player="O")
    with pytest.raises(ValueError):
        ai.choose(game)

    game.play_move(0)
    move = ai.choose(game)
    assert move in game.available_moves()
    # Only the center holds the draw against a corner opening
    assert move == 4


def test_ai_accepts_bare_board():
    ai = MinimaxAI(player="O")
    assert ai.choose(board_from("XX.......")) == 2
