"""FastAPI-powered web UI for playing tic-tac-toe against the computer."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import DIFFICULTY_NAMES, ComputerPlayer
from .config import load_settings
from .game import SYMBOLS, Outcome, Progress, TicTacToeGame

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for the current game, the player's progress and AI bookkeeping."""

    game: TicTacToeGame
    progress: Progress
    ai_pending: bool = False
    # Bumped on restart so a pending AI move for the old board is discarded
    generation: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="TicTacToe", description="Tic-tac-toe against the computer")


ALLOWED_DIFFICULTIES: Tuple[int, ...] = (1, 2, 3)
AI_THINK_DELAY: float = load_settings().ai_delay


class NewGameRequest(BaseModel):
    """Request payload for starting a new session."""

    difficulty: int = Field(
        default=1,
        description="1 = random, 2 = blocking, 3 = minimax",
    )

    @field_validator("difficulty")
    @classmethod
    def ensure_supported_difficulty(cls, value: int) -> int:
        if value not in ALLOWED_DIFFICULTIES:
            raise ValueError(
                f"Unsupported difficulty {value}. "
                f"Choose one of {', '.join(map(str, ALLOWED_DIFFICULTIES))}."
            )
        return value


class SymbolRequest(BaseModel):
    """Request payload for picking the player's symbol."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    player_starts: Optional[bool] = Field(default=None, alias="playerStarts")

    @field_validator("symbol")
    @classmethod
    def ensure_known_symbol(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in SYMBOLS:
            raise ValueError(f"Symbol must be one of {', '.join(SYMBOLS)}")
        return value


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    index: int = Field(ge=0, le=8)


def _create_session(difficulty: int) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(
        game=TicTacToeGame(), progress=Progress(difficulty_level=difficulty)
    )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("session %s created at difficulty %d", session_id, difficulty)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_if_finished(game_id: str, session: GameSession, outcome: Outcome) -> None:
    if outcome.in_progress:
        return
    before = session.progress.difficulty_level
    session.progress.record(outcome, session.game.player_symbol)  # type: ignore[arg-type]
    logger.info(
        "session %s finished: %s (games played %d)",
        game_id,
        outcome.winner or "draw",
        session.progress.games_played,
    )
    if session.progress.difficulty_level != before:
        logger.info(
            "session %s difficulty raised to %d",
            game_id,
            session.progress.difficulty_level,
        )


def _schedule_ai(session: GameSession) -> bool:
    """Mark the AI move as pending if it is the AI's turn. Caller holds the lock."""
    if session.game.ai_to_move:
        session.ai_pending = True
        return True
    return False


def _run_ai_turn(game_id: str, generation: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        if session.generation != generation:
            logger.debug("session %s: discarding stale AI move", game_id)
            return
        try:
            game = session.game
            if not game.ai_to_move:
                return
            ai = ComputerPlayer(
                symbol=game.ai_symbol,  # type: ignore[arg-type]
                opponent=game.player_symbol,  # type: ignore[arg-type]
                difficulty=session.progress.difficulty_level,
            )
            outcome = game.apply_ai_board(ai.play(game.squares))
            logger.debug(
                "session %s: %s AI played",
                game_id,
                DIFFICULTY_NAMES.get(ai.difficulty, "minimax"),
            )
            _record_if_finished(game_id, session, outcome)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        progress = session.progress
        outcome = game.outcome
        return {
            "id": game_id,
            "squares": [c or "" for c in game.squares],
            "playerSymbol": game.player_symbol,
            "aiSymbol": game.ai_symbol,
            "playerIsNext": game.player_is_next,
            "status": game.status_message(),
            "winner": outcome.winner,
            "drawn": outcome.drawn,
            "finished": not outcome.in_progress,
            "canUndo": game.can_undo and not session.ai_pending,
            "aiPending": session.ai_pending,
            "gamesPlayed": progress.games_played,
            "gamesCountForChangeDifficulty": progress.games_count_for_change_difficulty,
            "difficultyLevel": progress.difficulty_level,
        }


def _queue_ai(
    game_id: str,
    session: GameSession,
    background_tasks: Optional[BackgroundTasks],
) -> None:
    if background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id, session.generation)


def _choose_symbol(
    game_id: str,
    session: GameSession,
    symbol: str,
    player_starts: Optional[bool],
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        try:
            session.game.choose_symbol(symbol, player_starts)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        should_schedule_ai = _schedule_ai(session)

    if should_schedule_ai:
        _queue_ai(game_id, session, background_tasks)


def _apply_player_move(
    game_id: str,
    session: GameSession,
    index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        try:
            outcome = session.game.play_player_move(index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        _record_if_finished(game_id, session, outcome)
        should_schedule_ai = _schedule_ai(session)

    if should_schedule_ai:
        _queue_ai(game_id, session, background_tasks)


def _restart(game_id: str, session: GameSession, reset_ai: bool = False) -> None:
    with session.lock:
        session.generation += 1
        session.ai_pending = False
        session.game = TicTacToeGame()
        if reset_ai:
            session.progress.reset_difficulty()
    logger.info("session %s restarted%s", game_id, " with AI reset" if reset_ai else "")


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(int(request.difficulty))
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/symbol")
def choose_symbol(
    game_id: str, request: SymbolRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _choose_symbol(
        game_id, session, request.symbol, request.player_starts, background_tasks
    )
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/undo")
def undo_move(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        try:
            session.game.undo()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/restart")
def restart_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _restart(game_id, session)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset-ai")
def reset_ai(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _restart(game_id, session, reset_ai=True)
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
    <style>
      body { font-family: system-ui, sans-serif; background: #f6f6f6; color: #222;
             display: flex; justify-content: center; padding: 2rem; }
      body.dark-mode { background: #1d1f24; color: #eee; }
      .board { display: grid; grid-template-columns: repeat(3, 5rem); gap: 0.3rem; margin: 1rem 0; }
      .square { width: 5rem; height: 5rem; font-size: 2.5rem; cursor: pointer;
                border: 1px solid #999; background: #fff; color: inherit; }
      body.dark-mode .square { background: #2c2f36; }
      .controls button, .symbols button { margin-right: 0.5rem; }
      .hidden { display: none; }
      #theme { position: fixed; top: 1rem; right: 1rem; }
    </style>
  </head>
  <body>
    <button id=\"theme\" aria-label=\"Toggle theme\">&#9681;</button>
    <main>
      <h1 id=\"status\">Choose your symbol</h1>
      <div id=\"symbols\" class=\"symbols\">
        <button data-symbol=\"X\">X</button>
        <button data-symbol=\"O\">O</button>
      </div>
      <div id=\"board\" class=\"board hidden\"></div>
      <div class=\"controls\">
        <button id=\"undo\" class=\"hidden\">Go back to last move</button>
        <button id=\"restart\">Restart</button>
        <button id=\"reset-ai\">Reset AI Difficulty</button>
      </div>
      <p id=\"games\">Games played: 0</p>
      <p id=\"difficulty\">AI difficulty: 1</p>
    </main>
    <script>
      const statusEl = document.getElementById('status');
      const boardEl = document.getElementById('board');
      const symbolsEl = document.getElementById('symbols');
      const undoEl = document.getElementById('undo');
      let gameId = localStorage.getItem('gameId');
      let poll = null;

      if (localStorage.getItem('isDarkMode') === 'true') {
        document.body.classList.add('dark-mode');
      }
      document.getElementById('theme').addEventListener('click', () => {
        const dark = document.body.classList.toggle('dark-mode');
        localStorage.setItem('isDarkMode', String(dark));
      });

      async function api(path, body) {
        const response = await fetch(path, {
          method: body === undefined ? 'GET' : 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        if (!response.ok) {
          const error = await response.json().catch(() => ({}));
          throw new Error(error.detail || response.statusText);
        }
        return response.json();
      }

      function render(state) {
        statusEl.textContent = state.status;
        symbolsEl.classList.toggle('hidden', Boolean(state.playerSymbol));
        boardEl.classList.toggle('hidden', !state.playerSymbol);
        undoEl.classList.toggle('hidden', !state.canUndo);
        document.getElementById('games').textContent = `Games played: ${state.gamesPlayed}`;
        document.getElementById('difficulty').textContent = `AI difficulty: ${state.difficultyLevel}`;
        boardEl.innerHTML = '';
        state.squares.forEach((value, index) => {
          const square = document.createElement('button');
          square.className = 'square';
          square.textContent = value;
          square.addEventListener('click', () => act(`/api/game/${gameId}/move`, { index }));
          boardEl.appendChild(square);
        });
        clearTimeout(poll);
        if (state.aiPending) {
          poll = setTimeout(refresh, 300);
        }
      }

      async function act(path, body) {
        try {
          render(await api(path, body || {}));
        } catch (err) {
          statusEl.textContent = err.message;
        }
      }

      async function refresh() {
        try {
          render(await api(`/api/game/${gameId}`));
        } catch (err) {
          gameId = null;
          await start();
        }
      }

      async function start() {
        if (!gameId) {
          const state = await api('/api/game', { difficulty: 1 });
          gameId = state.id;
          localStorage.setItem('gameId', gameId);
          render(state);
          return;
        }
        await refresh();
      }

      symbolsEl.querySelectorAll('button').forEach((button) => {
        button.addEventListener('click', () =>
          act(`/api/game/${gameId}/symbol`, { symbol: button.dataset.symbol })
        );
      });
      undoEl.addEventListener('click', () => act(`/api/game/${gameId}/undo`));
      document.getElementById('restart').addEventListener('click', () =>
        act(`/api/game/${gameId}/restart`)
      );
      document.getElementById('reset-ai').addEventListener('click', () =>
        act(`/api/game/${gameId}/reset-ai`)
      );

      start();
    </script>
  </body>
</html>
"""
