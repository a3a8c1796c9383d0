"""First-pass loudness measurement with ffmpeg's loudnorm filter.

With print_format=json, loudnorm prints a marker line followed by a JSON
object on stderr once the whole stream has been read:

    [Parsed_loudnorm_0 @ 0x5581f8a3c2c0]
    {
            "input_i" : "-27.61",
            "input_tp" : "-4.47",
            "input_lra" : "18.06",
            "input_thresh" : "-39.20",
            ...
            "target_offset" : "0.58"
    }

The four input_* values feed the second, linear-mode loudnorm pass.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Callable
from pathlib import Path

from streamnorm.core.subprocess_utils import ToolRunner, run_tool_async
from streamnorm.domain.models import LoudnessMeasurement, ProgressEvent, StreamRef
from streamnorm.exceptions import MeasurementParseError
from streamnorm.tools.ffmpeg_progress import parse_stderr_progress

logger = logging.getLogger(__name__)

# ffmpeg stats lines end in \r and the marker may follow one directly
_MARKER = re.compile(
    r"(?:^|(?<=\r))\[Parsed_loudnorm_\d+ @ 0x[0-9a-fA-F]+\]", re.MULTILINE
)
_REQUIRED_FIELDS = ("input_i", "input_lra", "input_tp", "input_thresh")


def _to_float(data: dict, key: str) -> float:
    raw = data.get(key)
    if raw is None:
        raise MeasurementParseError(f"loudnorm report is missing '{key}'")
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise MeasurementParseError(
            f"loudnorm field '{key}' is not numeric: {raw!r}"
        ) from e
    if not math.isfinite(value):
        # Silent or empty streams report -inf
        raise MeasurementParseError(f"loudnorm field '{key}' is not finite: {raw}")
    return value


def parse_loudnorm_output(text: str) -> LoudnessMeasurement:
    """Extract the loudness report from loudnorm's diagnostic output.

    Args:
        text: Complete stderr of the measurement pass.

    Returns:
        The parsed LoudnessMeasurement.

    Raises:
        MeasurementParseError: If the marker or JSON block is missing, the
            JSON is malformed, or a required field is absent or not a number.
    """
    marker = _MARKER.search(text)
    if marker is None:
        raise MeasurementParseError("loudnorm report marker not found in output")

    tail = text[marker.end() :]
    start = tail.find("{")
    end = tail.find("}", start)
    if start == -1 or end == -1:
        raise MeasurementParseError("loudnorm report block not found after marker")

    block = re.sub(r"[\r\n\t]", "", tail[start : end + 1])
    try:
        data = json.loads(block)
    except json.JSONDecodeError as e:
        raise MeasurementParseError(f"loudnorm report is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MeasurementParseError("loudnorm report is not a JSON object")

    values = {key: _to_float(data, key) for key in _REQUIRED_FIELDS}
    target_offset = None
    if data.get("target_offset") is not None:
        try:
            target_offset = float(data["target_offset"])
        except (TypeError, ValueError):
            logger.debug("Ignoring unparsable target_offset %r", data["target_offset"])

    return LoudnessMeasurement(target_offset=target_offset, **values)


def build_measurement_command(
    ffmpeg: str | Path, source: Path, ref: StreamRef
) -> list[str]:
    """Build the ffmpeg invocation for one full first-pass measurement.

    Only the given stream is decoded and output is discarded.
    """
    return [
        str(ffmpeg),
        "-hide_banner",
        "-nostdin",
        "-i",
        str(source),
        "-map",
        f"0:{ref.stream_index}",
        "-af",
        "loudnorm=print_format=json",
        "-f",
        "null",
        "-",
    ]


async def measure_loudness(
    source: Path,
    ref: StreamRef,
    duration: float | None,
    runner: ToolRunner = run_tool_async,
    progress: Callable[[ProgressEvent], None] | None = None,
    ffmpeg: str | Path = "ffmpeg",
) -> LoudnessMeasurement:
    """Run the measurement pass for one audio stream.

    Args:
        source: Input media file.
        ref: Stream to measure.
        duration: Stream duration in seconds, used for progress percentages.
        runner: Async tool runner (see run_tool_async).
        progress: Receives ProgressEvents while the pass runs.
        ffmpeg: ffmpeg executable.

    Returns:
        The parsed LoudnessMeasurement.

    Raises:
        ProbeInvocationError: If ffmpeg cannot run or exits non-zero.
        MeasurementParseError: If the report cannot be parsed.
    """
    command = build_measurement_command(ffmpeg, source, ref)

    def on_line(line: str) -> None:
        parsed = parse_stderr_progress(line)
        if parsed is not None and progress is not None:
            progress(ProgressEvent(ref.key, parsed.get_percent(duration)))

    logger.info("Measuring loudness of stream %s", ref.key)
    output = await runner(command, on_stderr_line=on_line)
    measurement = parse_loudnorm_output(output.stderr)
    if progress is not None:
        progress(ProgressEvent(ref.key, 100.0))
    logger.debug(
        "Loudness of stream %s: I=%s LRA=%s TP=%s thresh=%s",
        ref.key,
        measurement.input_i,
        measurement.input_lra,
        measurement.input_tp,
        measurement.input_thresh,
    )
    return measurement
