# logging_config.py
"""
Centralized Logging Configuration for the K-Matrix Suite
========================================================

Every module obtains its logger here so that format, level and file
output are set in one place:

    from logging_config import get_logger
    logger = get_logger(__name__)

    logger.debug("Mesh size N=%d, k0=%.4f fm^-1", N, k0)
    logger.warning("Ill-conditioned system (cond=%.2e)", cond)

Log Levels
----------
- DEBUG: mesh sizes, on-shell momenta, condition numbers, residuals
- INFO: scans started/finished, loaded configurations, saved results
- WARNING: ill-conditioned systems, skipped scan points, slow convergence
- ERROR: failed runs

Configuration
-------------
Level from the environment:
    export KMATRIX_LOG_LEVEL=DEBUG

or programmatically:
    logging_config.set_log_level(logging.DEBUG)

File output:
    logging_config.enable_file_logging("scan.log")
"""

from __future__ import annotations
import logging
import sys
import os
from typing import Optional
from datetime import datetime

_loggers: dict = {}

_DEFAULT_FORMAT = "%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s"
_DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_LEVEL = logging.INFO
_ENV_VAR = "KMATRIX_LOG_LEVEL"

_handlers_configured = False
_file_handler: Optional[logging.FileHandler] = None


def _level_from_env() -> int:
    name = os.environ.get(_ENV_VAR, "").upper()
    level = logging.getLevelName(name) if name else _DEFAULT_LEVEL
    # getLevelName returns a string for unknown names
    return level if isinstance(level, int) else _DEFAULT_LEVEL


def _configure_root_handler() -> None:
    """
    Attach a single stdout handler to the root logger.
    Runs once, on the first get_logger() call.
    """
    global _handlers_configured

    if _handlers_configured:
        return

    level = _level_from_env()
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(_DEFAULT_FORMAT, datefmt=_DEFAULT_DATE_FORMAT)
    )

    # Do not stack handlers when an application configured logging already
    if not root_logger.handlers:
        root_logger.addHandler(console_handler)

    _handlers_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module name.

    Parameters
    ----------
    name : str
        Module name, typically __name__.

    Returns
    -------
    logging.Logger
        Configured (and cached) logger instance.
    """
    if name not in _loggers:
        _configure_root_handler()
        _loggers[name] = logging.getLogger(name)

    return _loggers[name]


def set_log_level(level: int) -> None:
    """
    Set the level of the root logger and all of its handlers.

    Parameters
    ----------
    level : int
        Logging level (e.g., logging.DEBUG).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers:
        handler.setLevel(level)


def enable_file_logging(
    filename: Optional[str] = None,
    level: int = logging.DEBUG
) -> str:
    """
    Mirror log output into a file.

    Parameters
    ----------
    filename : str, optional
        Path to log file. Defaults to a timestamped name.
    level : int
        Level for the file handler (default: DEBUG).

    Returns
    -------
    str
        Path to the log file.
    """
    global _file_handler

    if filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"kmatrix_log_{timestamp}.log"

    disable_file_logging()

    _file_handler = logging.FileHandler(filename, encoding='utf-8')
    _file_handler.setLevel(level)
    _file_handler.setFormatter(
        logging.Formatter(_DEFAULT_FORMAT, datefmt=_DEFAULT_DATE_FORMAT)
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(_file_handler)

    if root_logger.level > level:
        root_logger.setLevel(level)

    return filename


def disable_file_logging() -> None:
    """Detach and close the file handler, if any."""
    global _file_handler

    if _file_handler is not None:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None


def silence_logger(name: str) -> None:
    """Restrict a (usually third-party) logger to WARNING and above."""
    logging.getLogger(name).setLevel(logging.WARNING)


def enable_debug_mode() -> None:
    """Shortcut: full debug output on the console."""
    set_log_level(logging.DEBUG)


silence_logger("scipy")
silence_logger("numpy")
