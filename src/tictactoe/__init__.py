"""Tic-tac-toe against the computer: rules, move engine, and the web application."""

from .ai import ComputerPlayer, blocking_move, minimax_move, random_move, select_move
from .game import Outcome, Progress, TicTacToeGame, evaluate
from .ui import app

__all__ = [
    "ComputerPlayer",
    "Outcome",
    "Progress",
    "TicTacToeGame",
    "app",
    "blocking_move",
    "evaluate",
    "minimax_move",
    "random_move",
    "select_move",
]
