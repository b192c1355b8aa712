"""Core rules for 3x3 tic-tac-toe: board values, verdicts, and a per-game state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Board = Tuple[str, ...]

EMPTY = " "
PLAYERS: Tuple[Player, Player] = ("X", "O")
FIRST_PLAYER: Player = "X"

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class InvalidMove(ValueError):
    """Raised when a move targets an occupied cell or an index outside 0..8."""

    def __init__(self, index: int, reason: str):
        super().__init__(reason)
        self.index = index


# ---------- Verdict ----------


@dataclass(frozen=True)
class Verdict:
    status: str  # "in_progress", "win" or "draw"
    winner: Optional[Player] = None
    line: Optional[Tuple[int, int, int]] = None

    @property
    def is_win(self) -> bool:
        return self.status == "win"

    @property
    def is_draw(self) -> bool:
        return self.status == "draw"

    @property
    def is_terminal(self) -> bool:
        return self.status != "in_progress"


IN_PROGRESS = Verdict("in_progress")
DRAW = Verdict("draw")


# ---------- Board functions ----------


def empty_board() -> Board:
    return (EMPTY,) * 9


def other_player(mark: Player) -> Player:
    return "O" if mark == "X" else "X"


def detect_verdict(board: Sequence[str]) -> Verdict:
    """Classify a board.

    Lines are scanned rows, columns, then diagonals; the first completed one
    is reported, so a full board holding three-in-a-row is a win, never a draw.
    """
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return Verdict("win", winner=v, line=(a, b, c))
    if all(c != EMPTY for c in board):
        return DRAW
    return IN_PROGRESS


def legal_moves(board: Sequence[str]) -> List[int]:
    """Indices of empty cells in ascending order."""
    return [i for i, c in enumerate(board) if c == EMPTY]


def apply_move(board: Sequence[str], index: int, mark: Player) -> Board:
    """Return a copy of ``board`` with ``mark`` placed at ``index``."""
    if mark not in PLAYERS:
        raise ValueError(f"Unknown mark {mark!r}")
    if not 0 <= index < 9:
        raise InvalidMove(index, f"Cell index {index} is out of range")
    if board[index] != EMPTY:
        raise InvalidMove(index, "Cell already occupied")
    cells = list(board)
    cells[index] = mark
    return tuple(cells)


def side_to_move(board: Sequence[str]) -> Player:
    """Infer whose turn it is, assuming X moved first."""
    return FIRST_PLAYER if board.count("X") == board.count("O") else "O"


def is_consistent(board: Sequence[str]) -> bool:
    # X moves first, so X may lead O by at most one mark
    return board.count("X") - board.count("O") in (0, 1)


# ---------- Game ----------


class GamePhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    WON = "won"
    DRAWN = "drawn"


@dataclass
class TicTacToeGame:
    board: Board = field(default_factory=empty_board)
    current_player: Player = FIRST_PLAYER
    verdict: Verdict = IN_PROGRESS

    @property
    def phase(self) -> GamePhase:
        if self.verdict.is_win:
            return GamePhase.WON
        if self.verdict.is_draw:
            return GamePhase.DRAWN
        if all(c == EMPTY for c in self.board):
            return GamePhase.NOT_STARTED
        return GamePhase.IN_PROGRESS

    @property
    def winner(self) -> Optional[Player]:
        return self.verdict.winner

    @property
    def drawn(self) -> bool:
        return self.verdict.is_draw

    def available_moves(self) -> List[int]:
        if self.verdict.is_terminal:
            return []
        return legal_moves(self.board)

    def play_move(self, index: int) -> Verdict:
        """Place the current player's mark, then update the verdict and turn."""
        if self.verdict.is_terminal:
            raise ValueError("Game already finished")

        self.board = apply_move(self.board, index, self.current_player)
        self.verdict = detect_verdict(self.board)

        # Won and drawn games keep the last mover as current player
        if not self.verdict.is_terminal:
            self.current_player = other_player(self.current_player)
        return self.verdict

    def reset(self) -> None:
        self.board = empty_board()
        self.current_player = FIRST_PLAYER
        self.verdict = IN_PROGRESS
