"""Logging configuration for streamnorm.

The log file gets full records with timestamps and stream tags. stderr
shares the terminal with the progress line and with plan output, so
console records are kept to level, stream tag and message.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from streamnorm.logging.context import StreamContextFilter
from streamnorm.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from streamnorm.config.models import LoggingConfig

_LEVEL_MAP: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

FILE_FORMAT = "%(asctime)s - %(stream_tag)s%(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(stream_tag)s%(message)s"

_installed: list[logging.Handler] = []


def _formatter(config: LoggingConfig, text_format: str) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(text_format, datefmt="%Y-%m-%dT%H:%M:%S%z")


def _open_log_file(config: LoggingConfig) -> RotatingFileHandler | None:
    """Open the rotating log file, or None when it cannot be created."""
    file_path = Path(config.file).expanduser()
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            file_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not open log file {file_path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> list[logging.Handler]:
    """Install streamnorm's handlers on the root logger.

    Existing root handlers are removed, and those installed by an earlier
    call are closed so reconfiguring does not leave log files open. stderr
    is used when include_stderr is set or no log file could be opened.

    Returns:
        The handlers now attached to the root logger.
    """
    level = _LEVEL_MAP.get(config.level.casefold(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    while _installed:
        _installed.pop().close()
    root_logger.setLevel(level)

    context_filter = StreamContextFilter()
    handlers: list[logging.Handler] = []

    if config.file:
        file_handler = _open_log_file(config)
        if file_handler is not None:
            file_handler.setFormatter(_formatter(config, FILE_FORMAT))
            handlers.append(file_handler)

    if config.include_stderr or not handlers:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(_formatter(config, CONSOLE_FORMAT))
        handlers.append(stderr_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)
    _installed.extend(handlers)
    return handlers
