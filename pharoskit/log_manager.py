# pharoskit/log_manager.py
"""
Centralized logger factory for the Pharos CLI.

:func:`get_logger` returns a configured :class:`logging.Logger` with:
- colored console logs via `colorlog` when stderr is a TTY
- plain console logs otherwise
- optional file logging (UTF-8)
- idempotent handler attachment (no duplicate handlers)

User-facing progress is printed with ``click.secho``; the logger carries
diagnostics (commands, exit codes, durations) and stays quiet unless
``--verbose`` or ``PHAROS_LOG_LEVEL`` raises its level.

Environment variables
---------------------
PHAROS_FORCE_COLOR=true|false
    Force colored logging on or off regardless of the TTY check.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Dict, Optional, Union

import colorlog

__all__ = ["get_logger", "configure"]

ROOT_LOGGER = "pharoskit"

_LEVEL_COLORS: Dict[str, str] = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

_PLAIN_FMT = "[%(levelname)s] %(asctime)s - [%(name)s] %(message)s"
_PLAIN_DATEFMT = "%Y-%m-%d %H:%M:%S"
_COLOR_FMT = (
    "%(log_color)s[%(levelname)s]%(reset)s %(asctime)s - "
    "[%(name)s] %(message)s"
)


def _should_use_color() -> bool:
    env = os.getenv("PHAROS_FORCE_COLOR")
    if env is not None:
        return env.strip().lower() in {"1", "true", "yes", "on"}
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


def _build_stream_handler() -> logging.Handler:
    if _should_use_color():
        handler = colorlog.StreamHandler(stream=sys.stderr)
        handler.setFormatter(
            colorlog.ColoredFormatter(
                fmt=_COLOR_FMT,
                datefmt=_PLAIN_DATEFMT,
                log_colors=_LEVEL_COLORS,
            )
        )
        return handler
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=_PLAIN_FMT, datefmt=_PLAIN_DATEFMT))
    return handler


def _attach_stream_handler(logger: logging.Logger) -> None:
    if getattr(logger, "_pharos_stream_handler_attached", False):
        return
    logger.addHandler(_build_stream_handler())
    logger._pharos_stream_handler_attached = True  # type: ignore[attr-defined]


def _attach_file_handler(logger: logging.Logger, log_to_file: str) -> None:
    """Attach one FileHandler per absolute path."""
    log_file_path = os.path.abspath(log_to_file)
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == log_file_path:
            return

    try:
        fhandler = logging.FileHandler(log_file_path, encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to open log file '%s': %s", log_file_path, exc)
        return

    fhandler.setFormatter(logging.Formatter(fmt=_PLAIN_FMT, datefmt=_PLAIN_DATEFMT))
    logger.addHandler(fhandler)


def configure(
    level: Union[int, str] = logging.WARNING,
    log_to_file: Optional[str] = None,
) -> logging.Logger:
    """Configure the package root logger; children inherit its handlers.

    Parameters
    ----------
    level
        Numeric level or level name (``"DEBUG"``, ``"INFO"``...). Unknown
        names fall back to WARNING.
    log_to_file
        Optional path for an additional plain-text log file.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    _attach_stream_handler(logger)
    if log_to_file:
        _attach_file_handler(logger, log_to_file)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger (``pharoskit.<name>``)."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
