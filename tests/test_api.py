"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = 0.0


def _new_game(mode: str = "computer") -> dict:
    response = client.post("/api/game", json={"mode": mode})
    assert response.status_code == 200
    return response.json()


def _move(game_id: str, cell: int):
    return client.post(f"/api/game/{game_id}/move", json={"cellIndex": cell})


def test_create_game_and_first_move():
    payload = _new_game()
    assert payload["mode"] == "computer"
    assert payload["currentPlayer"] == "X"
    assert payload["phase"] == "not_started"
    assert payload["board"] == [""] * 9
    assert payload["legalMoves"] == list(range(9))
    assert payload["moveLog"] == []

    game_id = payload["id"]
    move_response = _move(game_id, 0)
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["board"][0] == "X"
    assert state["moveLog"][0] == {"player": "X", "cellIndex": 0}
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["aiPending"] is False
    assert final_state["currentPlayer"] == "X"
    assert final_state["lastMove"] == {"player": "O", "cellIndex": 4}
    assert final_state["board"][4] == "O"


def test_invalid_move_rejected():
    game_id = _new_game("2player")["id"]

    assert _move(game_id, 0).status_code == 200

    duplicate_move = _move(game_id, 0)
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"] == "Cell already occupied"

    state = client.get(f"/api/game/{game_id}").json()
    assert state["currentPlayer"] == "O"
    assert len(state["moveLog"]) == 1


def test_rejects_out_of_range_cell():
    game_id = _new_game()["id"]
    assert _move(game_id, 9).status_code == 422
    assert _move(game_id, -1).status_code == 422


def test_rejects_unknown_mode():
    response = client.post("/api/game", json={"mode": "online"})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert _move("missing", 0).status_code == 404


def test_two_player_win_updates_scores():
    game_id = _new_game("2player")["id"]
    for cell in (0, 3, 1, 4):
        assert _move(game_id, cell).status_code == 200
    state = _move(game_id, 2).json()

    assert state["phase"] == "won"
    assert state["verdict"] == {"status": "win", "winner": "X", "line": [0, 1, 2]}
    assert state["scores"] == {"X": 1, "O": 0, "draws": 0}
    assert state["legalMoves"] == []
    assert state["aiPending"] is False

    late_move = _move(game_id, 8)
    assert late_move.status_code == 400
    assert late_move.json()["detail"] == "Game already finished"

    reset = client.post(f"/api/game/{game_id}/reset").json()
    assert reset["board"] == [""] * 9
    assert reset["phase"] == "not_started"
    assert reset["scores"] == {"X": 1, "O": 0, "draws": 0}

    cleared = client.post(f"/api/game/{game_id}/scores/reset").json()
    assert cleared["scores"] == {"X": 0, "O": 0, "draws": 0}


def test_two_player_draw_counts_once():
    game_id = _new_game("2player")["id"]
    for cell in (0, 1, 2, 4, 3, 5, 7, 6, 8):
        state = _move(game_id, cell).json()
    assert state["phase"] == "drawn"
    assert state["verdict"]["status"] == "draw"
    assert state["scores"] == {"X": 0, "O": 0, "draws": 1}


def test_computer_game_never_scores_for_human():
    game_id = _new_game()["id"]
    state = client.get(f"/api/game/{game_id}").json()
    while state["verdict"]["status"] == "in_progress":
        assert _move(game_id, state["legalMoves"][0]).status_code == 200
        state = client.get(f"/api/game/{game_id}").json()

    assert state["scores"]["X"] == 0
    assert state["scores"]["O"] + state["scores"]["draws"] == 1


def test_settings_update_and_mode_switch():
    game_id = _new_game("2player")["id"]
    _move(game_id, 4)

    response = client.patch(
        f"/api/game/{game_id}/settings",
        json={"soundEnabled": False, "darkMode": True},
    )
    assert response.status_code == 200
    state = response.json()
    assert state["settings"] == {"soundEnabled": False, "darkMode": True}
    assert state["board"][4] == "X"

    state = client.patch(
        f"/api/game/{game_id}/settings", json={"mode": "computer"}
    ).json()
    assert state["mode"] == "computer"
    assert state["board"] == [""] * 9
    assert state["moveLog"] == []
    assert state["settings"]["darkMode"] is True

    bad = client.patch(f"/api/game/{game_id}/settings", json={"darkMode": "yes"})
    assert bad.status_code == 422


def test_reset_discards_pending_computer_move():
    game_id, session = ui._create_session("computer")
    ui._apply_player_move(game_id, session, 0)
    assert session.ai_pending is True
    generation = session.generation

    client.post(f"/api/game/{game_id}/reset")
    ui._run_ai_turn(game_id, generation)

    state = client.get(f"/api/game/{game_id}").json()
    assert state["board"] == [""] * 9
    assert state["aiPending"] is False
    assert state["currentPlayer"] == "X"


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic Tac Toe" in response.text
