"""Logging configuration for the full-screen UI.

Anything written to stderr while the prompt_toolkit application owns the
terminal corrupts the screen, so all ``trace_agent`` loggers are routed to a
log file instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "trace_agent"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(log_file: str | Path, verbose: bool = False) -> logging.Handler:
    """Send ``trace_agent`` log records to ``log_file``.

    Existing handlers on the package logger are replaced and propagation to
    the root logger is disabled. Returns the installed handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return handler


def reset_logging() -> None:
    """Remove the file handler again. Useful for tests."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
