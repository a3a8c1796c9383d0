"""Black bar detection by sampling ffmpeg's cropdetect filter.

A video stream is sampled at evenly spaced offsets. Each sample decodes two
frames and reports the rectangle of actual picture content:

    [Parsed_cropdetect_0 @ 0x55d2...] x1:0 x2:1919 y1:140 y2:939 w:1920
    h:800 x:0 y:140 pts:2 t:0.083 limit:0.094 crop=1920:800:0:140

Samples are reduced to one region per stream, one axis at a time: the
widest sample supplies width and x, the tallest sample supplies height
and y. Ties go to the earliest sample.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from streamnorm.core.subprocess_utils import ToolRunner, run_tool_async
from streamnorm.domain.models import CropRegion, StreamRef
from streamnorm.exceptions import CropParseError, ProbeInvocationError

logger = logging.getLogger(__name__)

_CROPDETECT_PATTERN = re.compile(
    r"\[Parsed_cropdetect.*\].*crop=(\d+):(\d+):(\d+):(\d+)"
)
_ANY_CROP_PATTERN = re.compile(r"crop=(\d+):(\d+):(\d+):(\d+)")

DEFAULT_SAMPLE_COUNT = 12
SAMPLE_FRAMES = 2


class CropAggregation(str, Enum):
    """How failed samples affect a stream's crop decision."""

    # Any failed sample fails the stream's crop detection
    FAIL_FAST = "fail_fast"
    # Aggregate whatever samples succeeded; fail only if all failed
    BEST_EFFORT = "best_effort"


def sample_offsets(duration: float | None, count: int) -> list[float]:
    """Evenly spaced sample offsets, excluding the start and the end.

    Examples:
        >>> sample_offsets(100.0, 4)
        [20.0, 40.0, 60.0, 80.0]
    """
    if count <= 0 or duration is None or duration <= 0:
        return []
    return [duration * i / (count + 1) for i in range(1, count + 1)]


def parse_cropdetect_output(text: str) -> CropRegion:
    """Read the crop rectangle from cropdetect's diagnostic output.

    The last rectangle reported by a cropdetect line wins.

    Raises:
        CropParseError: If no crop rectangle is present.
    """
    matches = _CROPDETECT_PATTERN.findall(text)
    if not matches:
        matches = _ANY_CROP_PATTERN.findall(text)
    if not matches:
        raise CropParseError("No crop=W:H:X:Y found in cropdetect output")
    width, height, x, y = (int(v) for v in matches[-1])
    return CropRegion(width=width, height=height, x=x, y=y)


def aggregate_crop(samples: Sequence[CropRegion]) -> CropRegion:
    """Reduce per-sample regions to one region for the stream.

    Width and x come from the first sample with the maximum width; height
    and y come from the first sample with the maximum height.

    Raises:
        CropParseError: If there are no samples.
    """
    if not samples:
        raise CropParseError("No crop samples to aggregate")

    widest = samples[0]
    tallest = samples[0]
    for sample in samples[1:]:
        if sample.width > widest.width:
            widest = sample
        if sample.height > tallest.height:
            tallest = sample

    return CropRegion(
        width=widest.width, height=tallest.height, x=widest.x, y=tallest.y
    )


def build_probe_command(
    ffmpeg: str | Path, source: Path, ref: StreamRef, offset: float
) -> list[str]:
    """Build the ffmpeg invocation for one two-frame cropdetect sample."""
    return [
        str(ffmpeg),
        "-hide_banner",
        "-nostdin",
        "-ss",
        f"{offset:.3f}",
        "-i",
        str(source),
        "-map",
        f"0:{ref.stream_index}",
        "-vf",
        "cropdetect",
        "-frames:v",
        str(SAMPLE_FRAMES),
        "-f",
        "null",
        "-",
    ]


async def _probe(
    runner: ToolRunner, ffmpeg: str | Path, source: Path, ref: StreamRef, offset: float
) -> CropRegion:
    output = await runner(build_probe_command(ffmpeg, source, ref, offset))
    return parse_cropdetect_output(output.stderr)


async def detect_crop(
    source: Path,
    ref: StreamRef,
    duration: float | None,
    count: int = DEFAULT_SAMPLE_COUNT,
    runner: ToolRunner = run_tool_async,
    strategy: CropAggregation = CropAggregation.FAIL_FAST,
    ffmpeg: str | Path = "ffmpeg",
) -> CropRegion | None:
    """Sample a video stream and return its aggregated crop region.

    All samples run concurrently and every sample is awaited, including
    under FAIL_FAST, before the first failure is raised.

    Args:
        source: Input media file.
        ref: Video stream to sample.
        duration: Stream duration in seconds.
        count: Number of samples; 0 disables detection.
        runner: Async tool runner (see run_tool_async).
        strategy: Whether one failed sample fails the whole detection.
        ffmpeg: ffmpeg executable.

    Returns:
        The aggregated CropRegion, or None when detection is disabled or the
        duration is unknown.

    Raises:
        ProbeInvocationError: If a sample's ffmpeg invocation failed.
        CropParseError: If a sample's output had no crop rectangle.
    """
    offsets = sample_offsets(duration, count)
    if not offsets:
        if count > 0:
            logger.debug("Skipping crop detection for %s: unknown duration", ref.key)
        return None

    logger.info("Detecting crop for stream %s with %d samples", ref.key, len(offsets))
    results = await asyncio.gather(
        *(_probe(runner, ffmpeg, source, ref, offset) for offset in offsets),
        return_exceptions=True,
    )

    samples: list[CropRegion] = []
    errors: list[Exception] = []
    for offset, result in zip(offsets, results):
        if isinstance(result, (ProbeInvocationError, CropParseError)):
            logger.debug("Crop sample at %.3fs failed: %s", offset, result)
            errors.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            samples.append(result)

    if errors and (strategy is CropAggregation.FAIL_FAST or not samples):
        raise errors[0]
    if errors:
        logger.warning(
            "%d of %d crop samples failed for stream %s, using the rest",
            len(errors),
            len(offsets),
            ref.key,
        )

    region = aggregate_crop(samples)
    logger.debug("Aggregated crop for stream %s: %s", ref.key, region.expression)
    return region
