"""Tic-tac-toe package exposing game rules, the minimax opponent, and the web application."""

from .ai import MinimaxAI, SearchResult, choose_move, search
from .game import (
    InvalidMove,
    TicTacToeGame,
    Verdict,
    apply_move,
    detect_verdict,
    empty_board,
    legal_moves,
)
from .ui import app

__all__ = [
    "InvalidMove",
    "MinimaxAI",
    "SearchResult",
    "TicTacToeGame",
    "Verdict",
    "app",
    "apply_move",
    "choose_move",
    "detect_verdict",
    "empty_board",
    "legal_moves",
    "search",
]
