"""FFmpeg progress parsing utilities.

Analysis passes print a status line to stderr roughly twice a second:

    frame= 1234 fps= 30 ... time=00:01:23.45 bitrate=N/A speed=2.0x
    size=N/A time=00:01:23.45 bitrate=N/A speed=41.2x

Audio-only passes omit the frame counter, so the time= field is what
progress is computed from.
"""

import re
from dataclasses import dataclass

_TIME_PATTERN = re.compile(r"time=(\d+):(\d+):(\d+)\.(\d+)")
_FRAME_PATTERN = re.compile(r"frame=\s*(\d+)")
_SPEED_PATTERN = re.compile(r"speed=\s*([^\s]+)")


@dataclass
class FFmpegProgress:
    """Parsed FFmpeg progress line."""

    frame: int | None = None
    out_time_us: int | None = None  # Output time in microseconds
    speed: str | None = None

    @property
    def out_time_seconds(self) -> float | None:
        if self.out_time_us is not None:
            return self.out_time_us / 1_000_000
        return None

    def get_percent(self, duration_seconds: float | None) -> float:
        """Calculate progress percentage based on duration.

        Args:
            duration_seconds: Total duration of the stream in seconds.

        Returns:
            Progress percentage (0.0 to 100.0), or 0.0 if unknown.
        """
        if duration_seconds is None or duration_seconds <= 0:
            return 0.0
        out_time = self.out_time_seconds
        if out_time is None:
            return 0.0
        return min(100.0, (out_time / duration_seconds) * 100)


def parse_stderr_progress(line: str) -> FFmpegProgress | None:
    """Parse an FFmpeg stderr progress line.

    Args:
        line: A line from FFmpeg stderr.

    Returns:
        Parsed FFmpegProgress, or None if the line carries no timestamp.
    """
    time_match = _TIME_PATTERN.search(line)
    if not time_match:
        return None

    hours, minutes, seconds = (int(time_match.group(i)) for i in (1, 2, 3))
    # Fraction is usually centiseconds
    fraction = time_match.group(4)[:6].ljust(6, "0")
    result = FFmpegProgress(
        out_time_us=(hours * 3600 + minutes * 60 + seconds) * 1_000_000
        + int(fraction)
    )

    frame_match = _FRAME_PATTERN.search(line)
    if frame_match:
        result.frame = int(frame_match.group(1))
    speed_match = _SPEED_PATTERN.search(line)
    if speed_match and speed_match.group(1) != "N/A":
        result.speed = speed_match.group(1)

    return result
