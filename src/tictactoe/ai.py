"""Move selection for the computer opponent: random, blocking and minimax."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging
import random

from .game import (
    BOARD_SIZE,
    SYMBOLS,
    Board,
    Player,
    calculate_winner,
    empty_cells,
    evaluate,
    with_move,
)

logger = logging.getLogger(__name__)

WIN_SCORE = 10


@dataclass(frozen=True)
class SearchResult:
    index: Optional[int]
    score: int


def _check_position(
    board: Sequence[Optional[Player]],
    ai_symbol: Player,
    player_symbol: Optional[Player] = None,
) -> List[int]:
    """Return the empty cells, rejecting boards no move can be made on."""
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells")
    if player_symbol is None:
        allowed = {None, ai_symbol, *SYMBOLS}
    elif player_symbol == ai_symbol:
        raise ValueError("Player and AI symbols must differ")
    else:
        allowed = {None, ai_symbol, player_symbol}
    if any(c not in allowed for c in board):
        raise ValueError("Board holds an unknown mark")
    if calculate_winner(board) is not None:
        raise ValueError("Game already finished")
    moves = empty_cells(board)
    if not moves:
        raise ValueError("No valid moves available")
    return moves


def _random_index(moves: Sequence[int], rng: Optional[random.Random]) -> int:
    return (rng or random).choice(list(moves))


# ---- generators ----


def random_move(
    board: Sequence[Optional[Player]],
    ai_symbol: Player,
    rng: Optional[random.Random] = None,
) -> Board:
    moves = _check_position(board, ai_symbol)
    index = _random_index(moves, rng)
    logger.debug("random move for %s at %d", ai_symbol, index)
    return with_move(board, index, ai_symbol)


def _first_winning_cell(
    board: Sequence[Optional[Player]], moves: Sequence[int], symbol: Player
) -> Optional[int]:
    for index in moves:
        if calculate_winner(with_move(board, index, symbol)) == symbol:
            return index
    return None


def blocking_move(
    board: Sequence[Optional[Player]],
    player_symbol: Player,
    ai_symbol: Player,
    rng: Optional[random.Random] = None,
) -> Board:
    """One-ply heuristic: win if possible, else block, else play randomly."""
    moves = _check_position(board, ai_symbol, player_symbol)

    index = _first_winning_cell(board, moves, ai_symbol)
    if index is not None:
        logger.debug("blocking heuristic: %s wins at %d", ai_symbol, index)
        return with_move(board, index, ai_symbol)

    index = _first_winning_cell(board, moves, player_symbol)
    if index is not None:
        logger.debug("blocking heuristic: %s blocks at %d", ai_symbol, index)
        return with_move(board, index, ai_symbol)

    return random_move(board, ai_symbol, rng)


def minimax(
    board: Sequence[Optional[Player]],
    maximizing: bool,
    ai_symbol: Player,
    player_symbol: Player,
    depth: int = 0,
) -> SearchResult:
    """Full game-tree search scored from the AI's point of view.

    Wins score ``10 - depth`` and losses ``depth - 10`` so that quicker wins
    and slower defeats are preferred. Among equal scores the lowest index
    wins.
    """
    outcome = evaluate(board)
    if outcome.winner == ai_symbol:
        return SearchResult(None, WIN_SCORE - depth)
    if outcome.winner == player_symbol:
        return SearchResult(None, depth - WIN_SCORE)
    if outcome.drawn:
        return SearchResult(None, 0)

    moves = empty_cells(board)

    if maximizing:
        # An immediate win already has the best possible score at this depth
        index = _first_winning_cell(board, moves, ai_symbol)
        if index is not None:
            return SearchResult(index, WIN_SCORE - (depth + 1))

        best = SearchResult(None, -WIN_SCORE - 1)
        for move in moves:
            child = with_move(board, move, ai_symbol)
            result = minimax(child, False, ai_symbol, player_symbol, depth + 1)
            if result.score > best.score:
                best = SearchResult(move, result.score)
        return best

    best = SearchResult(None, WIN_SCORE + 1)
    for move in moves:
        child = with_move(board, move, player_symbol)
        result = minimax(child, True, ai_symbol, player_symbol, depth + 1)
        if result.score < best.score:
            best = SearchResult(move, result.score)
    return best


def minimax_move(
    board: Sequence[Optional[Player]],
    ai_symbol: Player,
    player_symbol: Player,
    rng: Optional[random.Random] = None,
) -> Board:
    moves = _check_position(board, ai_symbol, player_symbol)

    # Searching an empty board always yields the same opening; pick one at random
    if len(moves) == BOARD_SIZE:
        index = _random_index(moves, rng)
        logger.debug("minimax opening for %s at %d", ai_symbol, index)
        return with_move(board, index, ai_symbol)

    result = minimax(board, True, ai_symbol, player_symbol)
    logger.debug(
        "minimax move for %s at %s (score %d)", ai_symbol, result.index, result.score
    )
    return with_move(board, result.index, ai_symbol)  # type: ignore[arg-type]


# ---- difficulty ----


RANDOM, BLOCKING, MINIMAX = 1, 2, 3
DIFFICULTY_NAMES = {RANDOM: "random", BLOCKING: "blocking", MINIMAX: "minimax"}


def select_move(
    board: Sequence[Optional[Player]],
    difficulty_level: int,
    player_symbol: Player,
    ai_symbol: Player,
    rng: Optional[random.Random] = None,
) -> Board:
    if difficulty_level == RANDOM:
        return random_move(board, ai_symbol, rng)
    if difficulty_level == BLOCKING:
        return blocking_move(board, player_symbol, ai_symbol, rng)
    return minimax_move(board, ai_symbol, player_symbol, rng)


@dataclass
class ComputerPlayer:
    """AI opponent bound to one symbol and difficulty level.

      - ComputerPlayer(symbol="O", opponent="X", difficulty=3)
      - choose(board) -> cell index
      - play(board) -> new board
    """

    symbol: Player
    opponent: Player
    difficulty: int = RANDOM
    rng: Optional[random.Random] = field(default=None, repr=False)

    def play(self, board: Sequence[Optional[Player]]) -> Board:
        return select_move(board, self.difficulty, self.opponent, self.symbol, self.rng)

    def choose(self, board: Sequence[Optional[Player]]) -> int:
        after = self.play(board)
        for i in range(BOARD_SIZE):
            if after[i] != board[i]:
                return i
        raise RuntimeError("Move engine returned an unchanged board")
