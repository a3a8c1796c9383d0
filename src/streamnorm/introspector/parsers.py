"""Pure parsing functions for ffprobe JSON output.

These functions transform ffprobe JSON data into streamnorm domain objects.
All functions are pure (no I/O, no side effects) for easy testing.
"""

import logging
import math
from pathlib import Path

from streamnorm.domain.models import (
    AUDIO,
    SUBTITLE,
    VIDEO,
    ProbeResult,
    StreamMetadata,
)

logger = logging.getLogger(__name__)

OTHER = "other"
_KNOWN_TYPES = frozenset((AUDIO, SUBTITLE, VIDEO))


def sanitize_string(value: str | None) -> str | None:
    """Replace characters that cannot be encoded as UTF-8."""
    if value is None:
        return None
    return value.encode("utf-8", errors="replace").decode("utf-8")


def _log_validation_warning(
    message: str,
    field_name: str,
    file_path: str | None,
    *args: object,
) -> None:
    context = f" in {file_path}" if file_path else ""
    logger.warning(f"{message}{context}", field_name, *args)


def validate_positive_int(
    value: int | None,
    field_name: str,
    file_path: str | None = None,
) -> int | None:
    """Validate that a value is a non-negative integer or None.

    Args:
        value: Value to validate.
        field_name: Field name for warning messages.
        file_path: File path context for warnings.

    Returns:
        Validated value or None if invalid.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        _log_validation_warning(
            "Expected int for %s, got %s", field_name, file_path, type(value).__name__
        )
        return None
    if value < 0:
        _log_validation_warning("Invalid negative %s: %d", field_name, file_path, value)
        return None
    return value


def parse_duration(value: str | float | None) -> float | None:
    """Parse a duration value from ffprobe into seconds.

    ffprobe reports durations as strings ("3600.000"). Negative, non-finite
    or unparsable values yield None.
    """
    if value is None:
        return None
    try:
        duration = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(duration) or duration < 0:
        return None
    return duration


def map_stream_type(codec_type: str | None) -> str:
    """Map ffprobe's codec_type to a streamnorm stream type."""
    if codec_type in _KNOWN_TYPES:
        return codec_type
    return OTHER


def _tag(stream: dict, name: str) -> str | None:
    """Read a tag that may sit at the top level or under "tags"."""
    value = stream.get(name)
    if value is None:
        value = (stream.get("tags") or {}).get(name)
    if value is None:
        return None
    return sanitize_string(str(value))


def parse_stream(
    stream: dict,
    container_duration: float | None = None,
    file_path: str | None = None,
) -> StreamMetadata:
    """Parse a single ffprobe stream dict into StreamMetadata.

    Args:
        stream: Stream dictionary from ffprobe JSON.
        container_duration: Fallback duration from container format.
        file_path: Optional file path for context in warning messages.

    Returns:
        StreamMetadata domain object.
    """
    stream_type = map_stream_type(stream.get("codec_type"))

    channels = width = height = None
    if stream_type == AUDIO:
        channels = validate_positive_int(stream.get("channels"), "channels", file_path)
    elif stream_type == VIDEO:
        width = validate_positive_int(stream.get("width"), "width", file_path)
        height = validate_positive_int(stream.get("height"), "height", file_path)

    duration = parse_duration(stream.get("duration"))
    if duration is None:
        duration = container_duration

    return StreamMetadata(
        index=stream.get("index", 0),
        codec_type=stream_type,
        codec_name=stream.get("codec_name"),
        language=_tag(stream, "language"),
        title=_tag(stream, "title"),
        channels=channels,
        width=width,
        height=height,
        duration_seconds=duration,
    )


def parse_streams(
    streams: list[dict],
    container_duration: float | None = None,
    file_path: str | None = None,
) -> tuple[dict[int, StreamMetadata], list[str]]:
    """Parse stream data into StreamMetadata keyed by stream index.

    Returns:
        Tuple of (streams by index, warnings list).
    """
    parsed: dict[int, StreamMetadata] = {}
    warnings: list[str] = []

    for stream in streams:
        index = stream.get("index", 0)

        if index in parsed:
            warnings.append(f"Duplicate stream index {index}, skipping")
            continue

        parsed[index] = parse_stream(stream, container_duration, file_path)

    return parsed, warnings


def parse_ffprobe_output(path: Path, data: dict) -> ProbeResult:
    """Parse ffprobe JSON output into a ProbeResult.

    Args:
        path: Path to the media file.
        data: Parsed ffprobe JSON output.

    Returns:
        ProbeResult with streams and warnings.
    """
    format_info = data.get("format", {})
    container_duration = parse_duration(format_info.get("duration"))

    streams, warnings = parse_streams(
        data.get("streams", []), container_duration, str(path)
    )

    if not streams:
        warnings.append("No streams found in file")

    return ProbeResult(
        file_path=path,
        container_duration=container_duration,
        streams=streams,
        warnings=warnings,
    )
