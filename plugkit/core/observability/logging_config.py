"""
Logging setup for the ``plugkit`` CLI and the ``protoc-gen-*`` executables.

A plugin's stdout is the response channel, so log records only ever go to
stderr (and optionally a file). protoc relays plugin stderr to the user
verbatim, which is why the quiet format carries a ``plugkit:`` prefix.

Level precedence: CLI flag, then PLUGKIT_LOG_LEVEL, then WARNING.
PLUGKIT_LOG_FILE / PLUGKIT_LOG_FILE_LEVEL add a file handler.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

ENV_LEVEL = "PLUGKIT_LOG_LEVEL"
ENV_FILE = "PLUGKIT_LOG_FILE"
ENV_FILE_LEVEL = "PLUGKIT_LOG_FILE_LEVEL"

_CLOCK = "%H:%M:%S"

# (highest level the format applies to, format, datefmt), most detailed first
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", _CLOCK),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", _CLOCK),
)
_QUIET_FORMAT = "plugkit: %(message)s"

# Several plugin processes may share one log file; the pid tells them apart.
_FILE_FORMAT = logging.Formatter(
    "%(asctime)s %(process)d %(levelname)-5s %(name)s:%(lineno)d — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def _console_formatter(level: int) -> logging.Formatter:
    for ceiling, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= ceiling:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_QUIET_FORMAT)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Replace the root logger's handlers with plugkit's.

    Args:
        level: Console level name; unknown names mean WARNING.
        log_file: Also log to this file when set.
        log_file_level: File level name, defaulting to ``level``.
        stream: Console stream, stderr unless a test passes its own.
    """
    console_level = _parse_level(level)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(_FILE_FORMAT)
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def setup_logging_from_env(default_level: str = "WARNING") -> None:
    """Configure logging from PLUGKIT_* variables only (plugin executables)."""
    setup_logging(
        level=os.environ.get(ENV_LEVEL, default_level),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


def _parse_level(level: str | None) -> int:
    """Level name → number; empty or unknown names give WARNING."""
    numeric = getattr(logging, level.upper(), None) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
