"""Logging configuration for the engine and its server."""

from __future__ import annotations

import logging
import sys

# Libraries that log every request or connection at INFO
_CHATTY_LOGGERS = ("uvicorn.access", "httpx")


def setup_logging(level: str = "INFO", quiet_libraries: bool = True) -> None:
    """Install a single stdout handler on the root logger."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)-5s] %(name)-25s | %(message)s",
        datefmt="%H:%M:%S",
    ))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)

    if quiet_libraries:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
