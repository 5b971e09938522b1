"""Logging utilities for DatasetSync.

Every module logs through the standard library under its own name; this
module configures the root logger once for the CLI or an embedding app.
"""

import logging
import sys
from typing import Optional, TextIO, Union

from .constants import DEFAULT_LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_log_level(verbose: bool = False, level: Optional[Union[int, str]] = None) -> int:
    """Turn the CLI flags into a numeric log level.

    An explicit level (number or name such as "warning") wins over verbose.

    Raises:
        ValueError: If a level name is not known to logging
    """
    if level is None:
        level = "DEBUG" if verbose else DEFAULT_LOG_LEVEL
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    verbose: bool = False,
    level: Optional[Union[int, str]] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure the root logger; safe to call repeatedly.

    Args:
        verbose: If True, log at DEBUG instead of the default level
        level: Optional explicit level (overrides verbose)
        stream: Output stream, stdout by default
    """
    logging.basicConfig(
        level=resolve_log_level(verbose, level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=stream or sys.stdout,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module (typically ``__name__``)."""
    return logging.getLogger(name)
