"""
Logging utilities for dotnet-check-updates.

This module centralizes logger configuration, formatting, and retrieval
for the package. It avoids duplicate handlers, supports optional
colorized output and honours the ``DCU_ENABLE_LOGGING`` /
``DCU_LOGLEVEL`` environment variables.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Mapping, Optional

from dotnet_check_updates.constants import (
    ENV_ENABLE_LOGGING,
    ENV_LOG_LEVEL,
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "dotnet_check_updates"

_logging_configured: bool = False
_lock = threading.Lock()

#: Accepted ``DCU_LOGLEVEL`` spellings.
_ENV_LEVELS = {
    "trace": logging.DEBUG,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "information": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}


class ColoredFormatter(logging.Formatter):
    """Logging formatter with optional ANSI color support."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color and self._should_use_color():
            color = self.COLORS.get(record.levelname)
            if color:
                record = logging.makeLogRecord(record.__dict__)
                record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)

    @staticmethod
    def _should_use_color() -> bool:
        """Determine whether ANSI colors should be emitted."""
        if os.environ.get("NO_COLOR"):
            return False
        if os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure logging for dotnet-check-updates.

    Safe to call multiple times; configuration is protected by a
    process-wide lock and replaces any previously installed handler.

    Args:
        level: Logging level (e.g., ``logging.INFO``, ``logging.DEBUG``).
        verbose: Enable verbose formatting with timestamps.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)

        fmt = LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT
        formatter = ColoredFormatter(
            fmt,
            datefmt=LOG_DATE_FORMAT,
            use_color=not os.environ.get("NO_COLOR"),
        )
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def level_from_environment(
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[int]:
    """Return the log level requested through environment variables.

    Logging is requested when ``DCU_ENABLE_LOGGING`` is ``true`` or ``1``.
    ``DCU_LOGLEVEL`` then selects the level and defaults to debug;
    unknown names also fall back to debug.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``.

    Returns:
        A :mod:`logging` level, or ``None`` when logging was not requested.
    """
    env = os.environ if environ is None else environ
    enabled = env.get(ENV_ENABLE_LOGGING, "").strip().lower()
    if enabled not in ("true", "1"):
        return None

    name = env.get(ENV_LOG_LEVEL, "").strip().lower()
    return _ENV_LEVELS.get(name, logging.DEBUG)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the ``dotnet_check_updates`` namespace.

    Args:
        name: Logger name. Use ``__name__`` for module-relative naming.

    Returns:
        A logger instance under the package hierarchy.
    """
    if not name or name == ROOT_LOGGER_NAME:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    elif name.startswith(ROOT_LOGGER_NAME + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    # Library-safe behavior if logging is not configured
    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if package logging has been configured."""
    return _logging_configured


def disable_logging() -> None:
    """Disable all package logging output."""
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _logging_configured = False
