"""Logging configuration for the tic-tac-toe web server."""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # Per-request access lines are noisy; keep warnings/errors.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
