"""Structured logging for streamnorm.

Text or JSON output with optional file rotation. Records logged inside a
per-stream task carry that stream's key.
"""

from streamnorm.logging.config import configure_logging
from streamnorm.logging.context import (
    StreamContextFilter,
    get_stream_context,
    stream_context,
)
from streamnorm.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "StreamContextFilter",
    "configure_logging",
    "get_stream_context",
    "stream_context",
]
