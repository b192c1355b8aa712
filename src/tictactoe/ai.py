"""Full-depth minimax with alpha-beta pruning for 3x3 tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union
import logging
import math

from .game import (
    Player,
    TicTacToeGame,
    apply_move,
    detect_verdict,
    legal_moves,
    other_player,
)

logger = logging.getLogger(__name__)

WIN_SCORE = 10
OPENING_MOVE = 4  # center


@dataclass(frozen=True)
class SearchResult:
    move: Optional[int]
    score: int


def search(board: Sequence[str], side_to_move: Player) -> SearchResult:
    """Pick the optimal move for ``side_to_move`` and report its minimax score.

    The side to move maximizes. Every root child gets a full window, so each
    root score is exact and the first move in index order wins ties.
    """
    moves = legal_moves(board)
    if not moves:
        return SearchResult(move=None, score=0)

    # Empty board: every opening draws under perfect play, take the center
    if len(moves) == 9:
        return SearchResult(move=OPENING_MOVE, score=0)

    opponent = other_player(side_to_move)
    best_move = moves[0]
    best_score = -math.inf

    for move in moves:
        child = apply_move(board, move, side_to_move)
        score = _minimax(child, 0, False, side_to_move, opponent, -math.inf, math.inf)
        if score > best_score:
            best_score, best_move = score, move

    logger.debug(
        "search side=%s move=%d score=%d", side_to_move, best_move, best_score
    )
    return SearchResult(move=best_move, score=int(best_score))


def choose_move(board: Sequence[str], side_to_move: Player) -> Optional[int]:
    """Optimal cell index for ``side_to_move``, or None when the board is full."""
    return search(board, side_to_move).move


def _minimax(
    board: Sequence[str],
    depth: int,
    maximizing: bool,
    me: Player,
    opp: Player,
    alpha: float,
    beta: float,
) -> float:
    verdict = detect_verdict(board)
    if verdict.is_win:
        return WIN_SCORE - depth if verdict.winner == me else depth - WIN_SCORE
    if verdict.is_draw:
        return 0

    if maximizing:
        value = -math.inf
        for move in legal_moves(board):
            child = apply_move(board, move, me)
            score = _minimax(child, depth + 1, False, me, opp, alpha, beta)
            value = max(value, score)
            alpha = max(alpha, score)
            if beta <= alpha:
                break
    else:
        value = math.inf
        for move in legal_moves(board):
            child = apply_move(board, move, opp)
            score = _minimax(child, depth + 1, True, me, opp, alpha, beta)
            value = min(value, score)
            beta = min(beta, score)
            if beta <= alpha:
                break
    return value


@dataclass
class MinimaxAI:
    """Perfect-play opponent.

    - MinimaxAI(player="O")
    - choose(game_or_board) -> cell index, or None on a full board
    """

    player: Player

    def choose(self, game: Union[TicTacToeGame, Sequence[str]]) -> Optional[int]:
        if isinstance(game, TicTacToeGame):
            if game.current_player != self.player:
                raise ValueError("It is not this AI player's turn")
            board: Sequence[str] = game.board
        else:
            board = game
        return choose_move(board, self.player)
