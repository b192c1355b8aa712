"""FastAPI-powered web UI for playing tic-tac-toe in the browser."""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import MinimaxAI
from .game import EMPTY, TicTacToeGame

logger = logging.getLogger(__name__)

GameMode = Literal["2player", "computer"]

COMPUTER_PLAYER = "O"
AI_THINK_DELAY: float = float(os.environ.get("TICTACTOE_AI_DELAY", "0.5"))


def _new_scores() -> Dict[str, int]:
    return {"X": 0, "O": 0, "draws": 0}


@dataclass
class GameSession:
    """One browser's game, its optional computer opponent, and its scoreboard."""

    game: TicTacToeGame
    mode: str = "computer"
    ai: Optional[MinimaxAI] = None
    scores: Dict[str, int] = field(default_factory=_new_scores)
    sound_enabled: bool = True
    dark_mode: bool = False
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    # Bumped on every reset so a computer move scheduled for an older board is dropped
    generation: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Tic-tac-toe with a perfect computer opponent")


class NewGameRequest(BaseModel):
    """Request payload for starting a new session."""

    mode: GameMode = Field(
        default="computer",
        description="'2player' for hot-seat play, 'computer' to face the minimax AI",
    )


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class SettingsRequest(BaseModel):
    """Partial update of per-session settings; omitted fields are left alone."""

    model_config = ConfigDict(populate_by_name=True)

    mode: Optional[GameMode] = None
    sound_enabled: Optional[bool] = Field(default=None, alias="soundEnabled")
    dark_mode: Optional[bool] = Field(default=None, alias="darkMode")

    @field_validator("sound_enabled", "dark_mode", mode="before")
    @classmethod
    def reject_non_bool(cls, value: object) -> object:
        if value is not None and not isinstance(value, bool):
            raise ValueError("Expected true or false")
        return value


def _make_ai(mode: str) -> Optional[MinimaxAI]:
    return MinimaxAI(player=COMPUTER_PLAYER) if mode == "computer" else None


def _create_session(mode: str) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(game=TicTacToeGame(), mode=mode, ai=_make_ai(mode))
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created session %s (mode=%s)", session_id, mode)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _reset_board(session: GameSession) -> None:
    # Caller holds session.lock
    session.game.reset()
    session.move_log.clear()
    session.ai_pending = False
    session.generation += 1


def _record_result(game_id: str, session: GameSession) -> None:
    # Caller holds session.lock and has just applied the final move
    game = session.game
    if game.winner:
        session.scores[game.winner] += 1
        logger.info("Session %s: %s wins on line %s", game_id, game.winner, game.verdict.line)
    elif game.drawn:
        session.scores["draws"] += 1
        logger.info("Session %s: draw", game_id)


def _run_ai_turn(game_id: str, generation: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        if session.generation != generation:
            return
        try:
            if not session.ai:
                return
            game = session.game
            if game.verdict.is_terminal:
                return
            if game.current_player != session.ai.player:
                return
            cell_index = session.ai.choose(game)
            if cell_index is None:
                return
            game.play_move(cell_index)
            session.move_log.append(
                {"player": session.ai.player, "cellIndex": cell_index}
            )
            if game.verdict.is_terminal:
                _record_result(game_id, session)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        verdict = game.verdict
        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode,
            "board": [c if c != EMPTY else "" for c in game.board],
            "currentPlayer": game.current_player,
            "phase": game.phase.value,
            "verdict": {
                "status": verdict.status,
                "winner": verdict.winner,
                "line": list(verdict.line) if verdict.line else None,
            },
            "legalMoves": game.available_moves(),
            "scores": dict(session.scores),
            "settings": {
                "soundEnabled": session.sound_enabled,
                "darkMode": session.dark_mode,
            },
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        game = session.game
        if game.verdict.is_terminal:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.ai and game.current_player == session.ai.player:
            raise HTTPException(status_code=400, detail="It is the computer's turn")

        player = game.current_player
        try:
            game.play_move(cell_index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": player, "cellIndex": cell_index})

        if game.verdict.is_terminal:
            _record_result(game_id, session)

        should_schedule_ai = bool(
            session.ai
            and not game.verdict.is_terminal
            and game.current_player == session.ai.player
        )
        if should_schedule_ai:
            session.ai_pending = True
        generation = session.generation

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id, generation)


@app.post("/api/game")
def create_game(request: Optional[NewGameRequest] = None) -> Dict[str, object]:
    mode = request.mode if request else "computer"
    game_id, session = _create_session(mode)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        _reset_board(session)
    logger.info("Session %s: board reset", game_id)
    return _serialize_session(game_id, session)


@app.patch("/api/game/{game_id}/settings")
def update_settings(game_id: str, request: SettingsRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if request.sound_enabled is not None:
            session.sound_enabled = request.sound_enabled
        if request.dark_mode is not None:
            session.dark_mode = request.dark_mode
        if request.mode is not None and request.mode != session.mode:
            session.mode = request.mode
            session.ai = _make_ai(request.mode)
            _reset_board(session)
            logger.info("Session %s: switched to %s mode", game_id, request.mode)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/scores/reset")
def reset_scores(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.scores = _new_scores()
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <link rel=\"preconnect\" href=\"https://fonts.googleapis.com\" />
    <link rel=\"preconnect\" href=\"https://fonts.gstatic.com\" crossorigin />
    <link
      href=\"https://fonts.googleapis.com/css2?family=Poppins:wght@400;500;600;700&display=swap\"
      rel=\"stylesheet\"
    />
    <style>
      :root {
        color-scheme: light;
        font-family: 'Poppins', system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
        --bg: radial-gradient(circle at top, #eef3ff, #e6e0ff 50%, #f7ecff 100%);
        --panel: rgba(255, 255, 255, 0.94);
        --cell: #ffffff;
        --cell-hover: #f3f5fb;
        --text: #13203a;
        --muted: rgba(19, 32, 58, 0.65);
        --win: #bbf7d0;
      }
      body.dark {
        color-scheme: dark;
        --bg: radial-gradient(circle at top, #1f2937, #111827 60%, #0b1120 100%);
        --panel: rgba(31, 41, 55, 0.94);
        --cell: #374151;
        --cell-hover: #4b5563;
        --text: #f3f4f6;
        --muted: rgba(243, 244, 246, 0.65);
        --win: #15803d;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        background: var(--bg);
        color: var(--text);
        transition: background 0.3s ease, color 0.3s ease;
      }
      main {
        width: min(460px, 100%);
      }
      h1 {
        margin: 0 0 1rem;
        text-align: center;
        font-size: clamp(2rem, 3vw + 1.2rem, 3rem);
        background: linear-gradient(90deg, #2563eb, #9333ea);
        -webkit-background-clip: text;
        background-clip: text;
        color: transparent;
      }
      .toolbar {
        display: flex;
        justify-content: center;
        gap: 0.75rem;
        margin-bottom: 1.25rem;
      }
      .toolbar button,
      .modes button,
      .actions button {
        border: none;
        border-radius: 999px;
        padding: 0.55rem 1rem;
        font: inherit;
        cursor: pointer;
        background: var(--panel);
        color: var(--text);
        box-shadow: 0 6px 16px rgba(15, 23, 42, 0.15);
      }
      .modes button.active {
        background: #3b82f6;
        color: #fff;
      }
      .panel {
        background: var(--panel);
        border-radius: 16px;
        box-shadow: 0 12px 28px rgba(15, 23, 42, 0.16);
        padding: 1rem 1.25rem;
        margin-bottom: 1.25rem;
        text-align: center;
      }
      .modes {
        display: flex;
        justify-content: center;
        gap: 0.5rem;
      }
      .status {
        font-size: 1.25rem;
        font-weight: 600;
      }
      .x {
        color: #3b82f6;
      }
      .o {
        color: #ef4444;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.75rem;
        margin-bottom: 1.25rem;
      }
      .cell {
        aspect-ratio: 1;
        border: none;
        border-radius: 14px;
        font: inherit;
        font-size: 2.6rem;
        font-weight: 700;
        background: var(--cell);
        box-shadow: 0 8px 20px rgba(15, 23, 42, 0.15);
        cursor: pointer;
        transition: transform 0.2s ease, background 0.2s ease;
      }
      .cell:hover:not(:disabled) {
        transform: scale(1.04);
        background: var(--cell-hover);
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.win {
        background: var(--win);
      }
      .scores {
        display: flex;
        justify-content: space-around;
      }
      .scores span {
        font-weight: 700;
      }
      .actions {
        display: flex;
        justify-content: center;
        gap: 0.75rem;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic Tac Toe</h1>
      <div class=\"toolbar\">
        <button id=\"sound-toggle\" type=\"button\">Sound: on</button>
        <button id=\"theme-toggle\" type=\"button\">Dark mode</button>
      </div>
      <section class=\"panel\">
        <div class=\"modes\">
          <button type=\"button\" data-mode=\"2player\">2 Player</button>
          <button type=\"button\" data-mode=\"computer\">vs Computer</button>
        </div>
      </section>
      <section class=\"panel\">
        <p class=\"status\" id=\"status\">Loading...</p>
      </section>
      <section class=\"board\" id=\"board\"></section>
      <section class=\"panel\">
        <div class=\"scores\">
          <div>Player X: <span class=\"x\" id=\"score-x\">0</span></div>
          <div>Player O: <span class=\"o\" id=\"score-o\">0</span></div>
          <div>Draws: <span id=\"score-draws\">0</span></div>
        </div>
      </section>
      <div class=\"actions\">
        <button id=\"new-game\" type=\"button\">New Game</button>
        <button id=\"reset-scores\" type=\"button\">Reset Scores</button>
      </div>
    </main>
    <script>
      (() => {
        const boardEl = document.getElementById('board');
        const statusEl = document.getElementById('status');
        const soundToggle = document.getElementById('sound-toggle');
        const themeToggle = document.getElementById('theme-toggle');
        const modeButtons = document.querySelectorAll('[data-mode]');
        const scoreEls = {
          X: document.getElementById('score-x'),
          O: document.getElementById('score-o'),
          draws: document.getElementById('score-draws'),
        };

        let gameId = null;
        let state = null;
        let pollTimer = null;
        let lastMoveCount = 0;

        const cells = Array.from({ length: 9 }, (_, index) => {
          const cell = document.createElement('button');
          cell.type = 'button';
          cell.className = 'cell';
          cell.addEventListener('click', () => playMove(index));
          boardEl.appendChild(cell);
          return cell;
        });

        function playSound(kind) {
          if (!state || !state.settings.soundEnabled) return;
          const AudioCtx = window.AudioContext || window.webkitAudioContext;
          if (!AudioCtx) return;
          const ctx = new AudioCtx();
          const oscillator = ctx.createOscillator();
          const gain = ctx.createGain();
          oscillator.connect(gain);
          gain.connect(ctx.destination);
          const now = ctx.currentTime;
          const length = kind === 'win' ? 0.3 : 0.1;
          if (kind === 'win') {
            oscillator.frequency.setValueAtTime(523, now);
            oscillator.frequency.setValueAtTime(659, now + 0.1);
            oscillator.frequency.setValueAtTime(784, now + 0.2);
          } else {
            oscillator.frequency.setValueAtTime(800, now);
          }
          gain.gain.setValueAtTime(0.3, now);
          gain.gain.exponentialRampToValueAtTime(0.01, now + length);
          oscillator.start(now);
          oscillator.stop(now + length);
        }

        function describe(current) {
          const verdict = current.verdict;
          if (verdict.status === 'win') {
            return `Player <span class=\"${verdict.winner.toLowerCase()}\">${verdict.winner}</span> wins!`;
          }
          if (verdict.status === 'draw') {
            return \"It's a draw!\";
          }
          const player = current.currentPlayer;
          const thinking = current.mode === 'computer' && current.aiPending ? ' (Computer thinking...)' : '';
          return `Current player: <span class=\"${player.toLowerCase()}\">${player}</span>${thinking}`;
        }

        function render(next) {
          const previous = state;
          state = next;
          const winLine = next.verdict.line || [];
          const finished = next.verdict.status !== 'in_progress';
          next.board.forEach((mark, index) => {
            const cell = cells[index];
            cell.textContent = mark;
            cell.className = 'cell' + (mark ? ' ' + mark.toLowerCase() : '');
            if (winLine.includes(index)) cell.classList.add('win');
            cell.disabled = finished || Boolean(mark) || next.aiPending;
          });
          statusEl.innerHTML = describe(next);
          scoreEls.X.textContent = next.scores.X;
          scoreEls.O.textContent = next.scores.O;
          scoreEls.draws.textContent = next.scores.draws;
          modeButtons.forEach((button) => {
            button.classList.toggle('active', button.dataset.mode === next.mode);
          });
          document.body.classList.toggle('dark', next.settings.darkMode);
          soundToggle.textContent = `Sound: ${next.settings.soundEnabled ? 'on' : 'off'}`;
          themeToggle.textContent = next.settings.darkMode ? 'Light mode' : 'Dark mode';

          if (previous && next.moveLog.length > lastMoveCount) {
            playSound(next.verdict.status === 'win' ? 'win' : 'move');
          }
          lastMoveCount = next.moveLog.length;

          clearTimeout(pollTimer);
          if (next.aiPending) {
            pollTimer = setTimeout(refresh, 250);
          }
        }

        async function request(url, options = {}) {
          const response = await fetch(url, {
            headers: { 'Content-Type': 'application/json' },
            ...options,
          });
          if (!response.ok) {
            const payload = await response.json().catch(() => ({}));
            throw new Error(payload.detail || response.statusText);
          }
          return response.json();
        }

        async function startSession() {
          render(await request('/api/game', { method: 'POST', body: JSON.stringify({ mode: 'computer' }) }));
          gameId = state.id;
        }

        async function refresh() {
          if (!gameId) return;
          render(await request(`/api/game/${gameId}`));
        }

        async function playMove(index) {
          if (!gameId) return;
          try {
            render(
              await request(`/api/game/${gameId}/move`, {
                method: 'POST',
                body: JSON.stringify({ cellIndex: index }),
              }),
            );
          } catch (error) {
            // Occupied cells and moves after game over are ignored
            console.debug(error.message);
          }
        }

        async function updateSettings(patch) {
          render(
            await request(`/api/game/${gameId}/settings`, {
              method: 'PATCH',
              body: JSON.stringify(patch),
            }),
          );
        }

        modeButtons.forEach((button) => {
          button.addEventListener('click', () => updateSettings({ mode: button.dataset.mode }));
        });
        soundToggle.addEventListener('click', () =>
          updateSettings({ soundEnabled: !state.settings.soundEnabled }),
        );
        themeToggle.addEventListener('click', () => updateSettings({ darkMode: !state.settings.darkMode }));
        document.getElementById('new-game').addEventListener('click', async () => {
          render(await request(`/api/game/${gameId}/reset`, { method: 'POST' }));
        });
        document.getElementById('reset-scores').addEventListener('click', async () => {
          render(await request(`/api/game/${gameId}/scores/reset`, { method: 'POST' }));
        });

        startSession().catch((error) => {
          statusEl.textContent = `Unable to start a game: ${error.message}`;
        });
      })();
    </script>
  </body>
</html>
"""
