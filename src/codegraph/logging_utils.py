"""Logging setup for the CLI and TUI."""

from __future__ import annotations

import logging
import sys

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: int = logging.WARNING) -> logging.Logger:
    """Send codegraph log records to stderr at the given level. Safe to call more than once."""
    logger = logging.getLogger("codegraph")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
