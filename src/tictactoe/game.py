"""Core rules for classic 3x3 tic-tac-toe played against the computer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import random

Player = str  # "X" or "O"
Board = List[Optional[Player]]

SYMBOLS: Tuple[Player, Player] = ("X", "O")
BOARD_SIZE = 9

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

IN_PROGRESS, WON, DRAW = "in_progress", "won", "draw"


# ---------- Outcome ----------


@dataclass(frozen=True)
class Outcome:
    status: str
    winner: Optional[Player] = None

    @classmethod
    def won(cls, mark: Player) -> "Outcome":
        return cls(status=WON, winner=mark)

    @property
    def in_progress(self) -> bool:
        return self.status == IN_PROGRESS

    @property
    def drawn(self) -> bool:
        return self.status == DRAW


OUTCOME_IN_PROGRESS = Outcome(status=IN_PROGRESS)
OUTCOME_DRAW = Outcome(status=DRAW)


def other_symbol(symbol: Player) -> Player:
    return "O" if symbol == "X" else "X"


def new_board() -> Board:
    return [None] * BOARD_SIZE


def empty_cells(board: Sequence[Optional[Player]]) -> List[int]:
    return [i for i, c in enumerate(board) if c is None]


def is_full(board: Sequence[Optional[Player]]) -> bool:
    return all(c is not None for c in board)


def with_move(board: Sequence[Optional[Player]], index: int, symbol: Player) -> Board:
    """Return a copy of ``board`` with ``symbol`` placed at ``index``."""
    squares = list(board)
    squares[index] = symbol
    return squares


def calculate_winner(board: Sequence[Optional[Player]]) -> Optional[Player]:
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return v
    return None


def evaluate(board: Sequence[Optional[Player]]) -> Outcome:
    """Classify ``board`` as won, drawn or still in progress.

    A completed line wins even on a full board; only a full board with no
    completed line is a draw.
    """
    winner = calculate_winner(board)
    if winner is not None:
        return Outcome.won(winner)
    if is_full(board):
        return OUTCOME_DRAW
    return OUTCOME_IN_PROGRESS


# ---------- Progress / difficulty escalation ----------


@dataclass
class Progress:
    """Counters a player accumulates across games, plus the AI level.

    The level climbs from 1 to 2 after more than 3 wins and from 2 to 3
    after more than 6; losses and draws only count toward ``games_played``.
    """

    games_played: int = 0
    games_count_for_change_difficulty: int = 0
    difficulty_level: int = 1

    def record(self, outcome: Outcome, player_symbol: Player) -> None:
        if outcome.in_progress:
            raise ValueError("Cannot record a game that is still in progress")
        self.games_played += 1
        if outcome.winner is not None and outcome.winner == player_symbol:
            self.games_count_for_change_difficulty += 1
        self._escalate()

    def reset_difficulty(self) -> None:
        self.games_count_for_change_difficulty = 0
        self.difficulty_level = 1

    def _escalate(self) -> None:
        count = self.games_count_for_change_difficulty
        if count > 6 and self.difficulty_level == 2:
            self.difficulty_level = 3
        elif count > 3 and self.difficulty_level == 1:
            self.difficulty_level = 2


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    squares: Board = field(default_factory=new_board)
    # Board as it was before the player's most recent move (single undo level)
    last_squares: Optional[Board] = None
    player_symbol: Optional[Player] = None
    ai_symbol: Optional[Player] = None
    # None until a symbol has been chosen
    player_is_next: Optional[bool] = None

    # ---- API used by UI ----

    def choose_symbol(
        self, symbol: Player, player_starts: Optional[bool] = None
    ) -> None:
        if symbol not in SYMBOLS:
            raise ValueError(f"Symbol must be one of {', '.join(SYMBOLS)}")
        if self.player_symbol is not None:
            raise ValueError("Symbol already chosen for this game")
        self.player_symbol = symbol
        self.ai_symbol = other_symbol(symbol)
        if player_starts is None:
            player_starts = random.random() < 0.5
        self.player_is_next = player_starts

    @property
    def started(self) -> bool:
        return self.player_symbol is not None

    @property
    def outcome(self) -> Outcome:
        return evaluate(self.squares)

    @property
    def finished(self) -> bool:
        return not self.outcome.in_progress

    @property
    def ai_to_move(self) -> bool:
        return self.started and self.player_is_next is False and not self.finished

    @property
    def can_undo(self) -> bool:
        return (
            self.last_squares is not None
            and self.player_is_next is True
            and not self.finished
        )

    def play_player_move(self, index: int) -> Outcome:
        """Place the player's mark at ``index`` and pass the turn to the AI."""
        if not self.started:
            raise ValueError("Choose a symbol before playing")
        if self.finished:
            raise ValueError("Game already finished")
        if not self.player_is_next:
            raise ValueError("It is not the player's turn")
        if not 0 <= index < BOARD_SIZE:
            raise ValueError("Cell index out of range")
        if self.squares[index] is not None:
            raise ValueError("Cell already occupied")

        self.last_squares = list(self.squares)
        self.squares = with_move(self.squares, index, self.player_symbol)
        outcome = self.outcome
        if outcome.in_progress:
            self.player_is_next = False
        return outcome

    def apply_ai_board(self, board: Sequence[Optional[Player]]) -> Outcome:
        """Adopt the board returned by the move engine for the AI's turn."""
        if not self.ai_to_move:
            raise ValueError("It is not the AI's turn")
        changed = [i for i in range(BOARD_SIZE) if board[i] != self.squares[i]]
        if len(changed) != 1 or self.squares[changed[0]] is not None:
            raise ValueError("AI board must add exactly one mark")
        if board[changed[0]] != self.ai_symbol:
            raise ValueError("AI board placed the wrong symbol")

        self.squares = list(board)
        outcome = self.outcome
        if outcome.in_progress:
            self.player_is_next = True
        return outcome

    def undo(self) -> None:
        if not self.can_undo:
            raise ValueError("Nothing to undo")
        self.squares = self.last_squares  # type: ignore[assignment]
        self.last_squares = None

    def status_message(self) -> str:
        if not self.started:
            return "Choose your symbol"
        outcome = self.outcome
        if outcome.winner is not None:
            return "You won!" if outcome.winner == self.player_symbol else "You lost."
        if outcome.drawn:
            return "Draw!"
        if self.player_is_next:
            return f"Player's turn ({self.player_symbol})"
        return f"AI's turn ({self.ai_symbol})"
