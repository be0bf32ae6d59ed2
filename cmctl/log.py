"""Logging setup for the cmctl CLI."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from cmctl.paths import data_dir

__all__ = ["default_log_path", "setup_logging"]

_LOG_FILENAME = "cmctl.log"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def default_log_path() -> Path:
    """Return the log file location inside the data directory."""

    return data_dir() / _LOG_FILENAME


def setup_logging(verbose: bool = False, *, log_path: Path | None = None) -> Path:
    """Configure loguru sinks for a CLI invocation.

    DEBUG and above always go to a rotated file. The console only receives
    records when ``verbose`` is set, since regular output is reserved for
    command results.
    """

    logger.remove()
    path = log_path if log_path is not None else default_log_path()
    logger.add(
        path,
        rotation="5 MB",
        retention=3,
        level="DEBUG",
        format=_FILE_FORMAT,
    )
    if verbose:
        logger.add(sys.stderr, level="DEBUG", format=_CONSOLE_FORMAT)
    return path
