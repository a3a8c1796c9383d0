"""External tool helpers: executable lookup and progress parsing."""

from streamnorm.tools.discovery import find_tool, require_tool
from streamnorm.tools.ffmpeg_progress import FFmpegProgress, parse_stderr_progress

__all__ = [
    "FFmpegProgress",
    "find_tool",
    "parse_stderr_progress",
    "require_tool",
]
