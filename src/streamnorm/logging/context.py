"""Per-stream context for structured logging.

Each per-stream task runs inside stream_context(...), so every record it
logs carries the stream key without passing it through every call.
contextvars are copied into asyncio tasks, so concurrent streams do not
see each other's context.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_stream_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stream_key", default=None
)
_source_file: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_file", default=None
)


@contextmanager
def stream_context(
    stream_key: str,
    source_file: Path | str | None = None,
) -> Generator[None, None, None]:
    """Set the stream being processed for the duration of the block.

    Example:
        with stream_context("0:1", "/media/movie.mkv"):
            logger.info("Measuring loudness")  # tagged [S0:1]
    """
    key_token = _stream_key.set(stream_key)
    file_token = _source_file.set(str(source_file) if source_file else None)
    try:
        yield
    finally:
        _stream_key.reset(key_token)
        _source_file.reset(file_token)


def get_stream_context() -> tuple[str | None, str | None]:
    """Get the current (stream_key, source_file), either may be None."""
    return _stream_key.get(), _source_file.get()


class StreamContextFilter(logging.Filter):
    """Logging filter that injects stream context into log records.

    Adds stream_key and source_file for JSON output, and a compact
    stream_tag such as "[S0:1] " for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        stream_key, source_file = get_stream_context()

        record.stream_key = stream_key
        record.source_file = source_file
        record.stream_tag = f"[S{stream_key}] " if stream_key else ""

        return True  # Never filter out records
