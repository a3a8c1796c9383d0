"""Unit tests for loudnorm measurement parsing and the measurement pass."""

from pathlib import Path

import pytest

from streamnorm.analysis.loudness import (
    build_measurement_command,
    measure_loudness,
    parse_loudnorm_output,
)
from streamnorm.domain.models import ProgressEvent, StreamRef
from streamnorm.exceptions import MeasurementParseError, ProbeInvocationError


class TestParseLoudnormOutput:
    """Tests for parse_loudnorm_output function."""

    def test_parses_report(self, loudnorm_stderr: str):
        measurement = parse_loudnorm_output(loudnorm_stderr)

        assert measurement.input_i == -27.61
        assert measurement.input_lra == 18.06
        assert measurement.input_tp == -4.47
        assert measurement.input_thresh == -39.20
        assert measurement.target_offset == 0.58

    def test_crlf_line_endings(self, loudnorm_stderr: str):
        measurement = parse_loudnorm_output(loudnorm_stderr.replace("\n", "\r\n"))
        assert measurement.input_i == -27.61

    def test_marker_after_progress_line(self, loudnorm_stderr: str):
        text = loudnorm_stderr.replace("speed= 412x\n[", "speed= 412x    \r[")
        assert "\r[Parsed_loudnorm_0" in text

        measurement = parse_loudnorm_output(text)

        assert measurement.input_i == -27.61
        assert measurement.target_offset == 0.58

    def test_missing_marker(self):
        with pytest.raises(MeasurementParseError, match="marker not found"):
            parse_loudnorm_output('{"input_i": "-23.0"}')

    def test_missing_block(self):
        with pytest.raises(MeasurementParseError, match="block not found"):
            parse_loudnorm_output("[Parsed_loudnorm_0 @ 0x55d2]\nno json here\n")

    def test_malformed_json(self):
        text = '[Parsed_loudnorm_0 @ 0xabc]\n{\n"input_i" : "-23.0",,\n}\n'
        with pytest.raises(MeasurementParseError, match="not valid JSON"):
            parse_loudnorm_output(text)

    def test_missing_field(self, loudnorm_stderr: str):
        text = loudnorm_stderr.replace('\t"input_lra" : "18.06",\n', "")
        with pytest.raises(MeasurementParseError, match="input_lra"):
            parse_loudnorm_output(text)

    def test_non_numeric_field(self, loudnorm_stderr: str):
        text = loudnorm_stderr.replace('"-27.61"', '"loud"')
        with pytest.raises(MeasurementParseError, match="not numeric"):
            parse_loudnorm_output(text)

    def test_silent_stream_rejected(self, loudnorm_stderr: str):
        """Silence measures as -inf, which cannot drive the second pass."""
        text = loudnorm_stderr.replace('"-27.61"', '"-inf"')
        with pytest.raises(MeasurementParseError, match="not finite"):
            parse_loudnorm_output(text)

    def test_target_offset_optional(self, loudnorm_stderr: str):
        text = loudnorm_stderr.replace(',\n\t"target_offset" : "0.58"', "")
        assert parse_loudnorm_output(text).target_offset is None


class TestBuildMeasurementCommand:
    def test_command(self):
        command = build_measurement_command(
            "/opt/ffmpeg", Path("/media/movie.mkv"), StreamRef(0, 2)
        )
        assert command == [
            "/opt/ffmpeg",
            "-hide_banner",
            "-nostdin",
            "-i",
            "/media/movie.mkv",
            "-map",
            "0:2",
            "-af",
            "loudnorm=print_format=json",
            "-f",
            "null",
            "-",
        ]


class TestMeasureLoudness:
    """Tests for measure_loudness with a fake runner."""

    @pytest.mark.asyncio
    async def test_publishes_progress(self, fake_runner_factory, loudnorm_stderr):
        runner = fake_runner_factory(
            lambda command: loudnorm_stderr,
            stderr_lines=[
                "size=N/A time=00:15:00.00 bitrate=N/A speed=400x",
                "unrelated line",
                "size=N/A time=00:30:00.00 bitrate=N/A speed=400x",
            ],
        )
        events: list[ProgressEvent] = []

        measurement = await measure_loudness(
            Path("movie.mkv"),
            StreamRef(0, 1),
            duration=3600.0,
            runner=runner,
            progress=events.append,
        )

        assert measurement.input_i == -27.61
        assert [e.percent for e in events] == [25.0, 50.0, 100.0]
        assert {e.stream for e in events} == {"0:1"}
        assert runner.calls[0][runner.calls[0].index("-map") + 1] == "0:1"

    @pytest.mark.asyncio
    async def test_invocation_failure_propagates(
        self, fake_runner_factory, failing_response
    ):
        runner = fake_runner_factory(failing_response)
        with pytest.raises(ProbeInvocationError):
            await measure_loudness(Path("movie.mkv"), StreamRef(0, 1), 60.0, runner)

    @pytest.mark.asyncio
    async def test_unparsable_output(self, fake_runner_factory):
        runner = fake_runner_factory(lambda command: "no report\n")
        events: list[ProgressEvent] = []
        with pytest.raises(MeasurementParseError):
            await measure_loudness(
                Path("movie.mkv"), StreamRef(0, 1), 60.0, runner, events.append
            )
        assert events == []
