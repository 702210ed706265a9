"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.game import TicTacToeGame
from tictactoe.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = 0.0


def _new_game(difficulty: int = 1) -> dict:
    response = client.post("/api/game", json={"difficulty": difficulty})
    assert response.status_code == 200
    return response.json()


def test_create_game_waits_for_symbol():
    payload = _new_game()
    assert payload["status"] == "Choose your symbol"
    assert payload["squares"] == [""] * 9
    assert payload["playerSymbol"] is None
    assert payload["difficultyLevel"] == 1
    assert payload["gamesPlayed"] == 0


def test_player_move_triggers_ai_reply():
    game_id = _new_game(3)["id"]
    chosen = client.post(
        f"/api/game/{game_id}/symbol", json={"symbol": "x", "playerStarts": True}
    )
    assert chosen.status_code == 200
    state = chosen.json()
    assert state["playerSymbol"] == "X"
    assert state["aiSymbol"] == "O"
    assert state["status"] == "Player's turn (X)"

    move_response = client.post(f"/api/game/{game_id}/move", json={"index": 0})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["squares"][0] == "X"
    assert state["playerIsNext"] is False
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}").json()
    assert follow_up["aiPending"] is False
    assert follow_up["playerIsNext"] is True
    assert follow_up["squares"][4] == "O"
    assert follow_up["canUndo"] is True


def test_ai_moves_first_when_player_does_not_start():
    game_id = _new_game()["id"]
    client.post(
        f"/api/game/{game_id}/symbol", json={"symbol": "O", "playerStarts": False}
    )
    state = client.get(f"/api/game/{game_id}").json()
    assert state["squares"].count("X") == 1
    assert state["playerIsNext"] is True


def test_invalid_moves_rejected():
    game_id = _new_game()["id"]
    early = client.post(f"/api/game/{game_id}/move", json={"index": 0})
    assert early.status_code == 400

    client.post(f"/api/game/{game_id}/symbol", json={"symbol": "X", "playerStarts": True})
    assert client.post(f"/api/game/{game_id}/move", json={"index": 0}).status_code == 200

    duplicate_move = client.post(f"/api/game/{game_id}/move", json={"index": 0})
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_payload_validation():
    assert client.post("/api/game", json={"difficulty": 4}).status_code == 422
    game_id = _new_game()["id"]
    assert (
        client.post(f"/api/game/{game_id}/symbol", json={"symbol": "Z"}).status_code
        == 422
    )
    assert client.post(f"/api/game/{game_id}/move", json={"index": 9}).status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404


def test_undo_restores_previous_board():
    game_id = _new_game(2)["id"]
    client.post(f"/api/game/{game_id}/symbol", json={"symbol": "X", "playerStarts": True})
    client.post(f"/api/game/{game_id}/move", json={"index": 4})

    undone = client.post(f"/api/game/{game_id}/undo")
    assert undone.status_code == 200
    state = undone.json()
    assert state["squares"] == [""] * 9
    assert state["canUndo"] is False

    assert client.post(f"/api/game/{game_id}/undo").status_code == 400


def test_win_is_recorded_and_restart_keeps_progress():
    game_id = _new_game()["id"]
    session = ui.SESSIONS[game_id]
    session.game = TicTacToeGame(squares=["X", "X", None, "O", "O", None, None, None, None])
    session.game.choose_symbol("X", player_starts=True)

    state = client.post(f"/api/game/{game_id}/move", json={"index": 2}).json()
    assert state["status"] == "You won!"
    assert state["finished"] is True
    assert state["aiPending"] is False
    assert state["gamesPlayed"] == 1
    assert state["gamesCountForChangeDifficulty"] == 1

    restarted = client.post(f"/api/game/{game_id}/restart").json()
    assert restarted["status"] == "Choose your symbol"
    assert restarted["gamesPlayed"] == 1


def test_reset_ai_restores_first_level():
    game_id = _new_game(3)["id"]
    ui.SESSIONS[game_id].progress.games_count_for_change_difficulty = 9

    state = client.post(f"/api/game/{game_id}/reset-ai").json()
    assert state["difficultyLevel"] == 1
    assert state["gamesCountForChangeDifficulty"] == 0


def test_restart_discards_pending_ai_move():
    game_id = _new_game()["id"]
    session = ui.SESSIONS[game_id]
    session.game.choose_symbol("X", player_starts=True)
    session.game.play_player_move(0)
    session.ai_pending = True
    stale = session.generation

    client.post(f"/api/game/{game_id}/restart")
    session.game.choose_symbol("X", player_starts=False)
    ui._run_ai_turn(game_id, stale)

    assert session.game.squares == [None] * 9
    assert session.ai_pending is False


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Choose your symbol" in response.text
