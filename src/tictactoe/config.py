"""Runtime settings read from the environment."""

from __future__ import annotations

from dataclasses import dataclass
import os


def _env(name: str, default: str) -> str:
    value = os.environ.get(name)
    if value is not None and value.strip() != "":
        return value.strip()
    return default


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    # Seconds the AI "thinks" before answering a player move
    ai_delay: float = 1.2


def load_settings() -> Settings:
    try:
        port = int(_env("TICTACTOE_PORT", "8000"))
        ai_delay = float(_env("TICTACTOE_AI_DELAY", "1.2"))
    except ValueError as exc:
        raise ValueError(f"Invalid TicTacToe setting: {exc}") from exc
    if ai_delay < 0:
        raise ValueError("TICTACTOE_AI_DELAY must not be negative")
    return Settings(
        host=_env("TICTACTOE_HOST", "0.0.0.0"),
        port=port,
        log_level=_env("TICTACTOE_LOG_LEVEL", "INFO").upper(),
        ai_delay=ai_delay,
    )
