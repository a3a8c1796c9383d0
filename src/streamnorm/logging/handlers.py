"""Custom logging handlers for streamnorm.

Provides JSONFormatter for structured log output.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line.

    Keys: timestamp (ISO-8601 UTC), level, message, logger, context
    (stream context plus anything passed via extra=) and exception.
    """

    # LogRecord attributes that are not user context
    _STANDARD_ATTRS: frozenset[str] = frozenset(
        set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__)
        | {"message", "asctime", "taskName"}
        | {"stream_key", "source_file", "stream_tag"}
    )

    def format(self, record: logging.LogRecord) -> str:
        record_time = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: dict[str, Any] = {
            "timestamp": record_time.isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }

        if record.name and record.name != "root":
            log_entry["logger"] = record.name

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS and not key.startswith("_")
        }
        # Stream context wins over same-named extra= keys
        for field in ("stream_key", "source_file"):
            value = getattr(record, field, None)
            if value:
                context[field] = value

        if context:
            log_entry["context"] = context

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)
