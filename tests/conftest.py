"""Shared test fixtures for streamnorm."""

import json
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from streamnorm.config.models import NormalizationOptions
from streamnorm.core.subprocess_utils import ToolOutput
from streamnorm.domain.models import ProbeResult, StreamMetadata
from streamnorm.exceptions import ProbeInvocationError
from streamnorm.introspector.parsers import parse_ffprobe_output

LOUDNORM_STDERR = """\
size=N/A time=00:44:59.98 bitrate=N/A speed= 412x
[Parsed_loudnorm_0 @ 0x5581f8a3c2c0]
{
\t"input_i" : "-27.61",
\t"input_tp" : "-4.47",
\t"input_lra" : "18.06",
\t"input_thresh" : "-39.20",
\t"output_i" : "-16.58",
\t"output_tp" : "-1.50",
\t"output_lra" : "14.78",
\t"output_thresh" : "-27.71",
\t"normalization_type" : "dynamic",
\t"target_offset" : "0.58"
}
"""


def cropdetect_stderr(width: int, height: int, x: int, y: int) -> str:
    """Build cropdetect diagnostic output reporting one rectangle."""
    return (
        "frame=    2 fps=0.0 q=-0.0 Lsize=N/A time=00:00:00.08 speed=1.1x\n"
        f"[Parsed_cropdetect_0 @ 0x55d2c8f0a1c0] x1:{x} x2:{x + width - 1} "
        f"y1:{y} y2:{y + height - 1} w:{width} h:{height} x:{x} y:{y} "
        f"pts:2 t:0.083 limit:0.094 crop={width}:{height}:{x}:{y}\n"
    )


def load_ffprobe_fixture(name: str) -> dict:
    """Load an ffprobe JSON fixture by name (without .json extension)."""
    fixture_path = Path(__file__).parent / "fixtures" / "ffprobe" / f"{name}.json"
    return json.loads(fixture_path.read_text())


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def multi_language_fixture() -> dict:
    """Video, French 5.1, English stereo, Spanish 6.1 and English subtitle."""
    return load_ffprobe_fixture("multi_language")


@pytest.fixture
def commentary_subtitles_fixture() -> dict:
    """Japanese audio with an English commentary subtitle listed first."""
    return load_ffprobe_fixture("commentary_subtitles")


@pytest.fixture
def untagged_fixture() -> dict:
    """Streams without language or title tags."""
    return load_ffprobe_fixture("untagged")


@pytest.fixture
def multi_language_probe(multi_language_fixture: dict) -> ProbeResult:
    return parse_ffprobe_output(Path("/media/movie.mkv"), multi_language_fixture)


@pytest.fixture
def commentary_probe(commentary_subtitles_fixture: dict) -> ProbeResult:
    return parse_ffprobe_output(Path("/media/anime.mkv"), commentary_subtitles_fixture)


@pytest.fixture
def default_options() -> NormalizationOptions:
    """Options with every analysis pass disabled."""
    return NormalizationOptions(autocrop_intervals=0)


def make_stream(index: int, codec_type: str, **kwargs) -> StreamMetadata:
    """Build StreamMetadata with sensible defaults per stream type."""
    defaults: dict = {
        "audio": {"codec_name": "aac", "channels": 2},
        "subtitle": {"codec_name": "subrip"},
        "video": {"codec_name": "h264", "width": 1920, "height": 1080},
    }.get(codec_type, {})
    return StreamMetadata(index=index, codec_type=codec_type, **{**defaults, **kwargs})


class FakeRunner:
    """Async stand-in for run_tool_async.

    Args:
        respond: Called with the command list; returns the stderr text, or
            raises ProbeInvocationError to simulate a failed invocation.
        stderr_lines: Lines fed to on_stderr_line before returning.
    """

    def __init__(
        self,
        respond: Callable[[list[str]], str],
        stderr_lines: list[str] | None = None,
    ) -> None:
        self.respond = respond
        self.stderr_lines = stderr_lines or []
        self.calls: list[list[str]] = []

    async def __call__(self, args, on_stderr_line=None, timeout=None) -> ToolOutput:
        command = [str(a) for a in args]
        self.calls.append(command)
        if on_stderr_line is not None:
            for line in self.stderr_lines:
                on_stderr_line(line)
        return ToolOutput(stdout="", stderr=self.respond(command), returncode=0)


def failing(command: list[str]) -> str:
    """FakeRunner response that always fails."""
    raise ProbeInvocationError(command, 1, stderr="Invalid data found")


@pytest.fixture
def fake_runner_factory():
    """Return the FakeRunner class for building per-test runners."""
    return FakeRunner


@pytest.fixture
def stream_factory():
    """Return make_stream for building StreamMetadata."""
    return make_stream


@pytest.fixture
def loudnorm_stderr() -> str:
    return LOUDNORM_STDERR


@pytest.fixture
def cropdetect_output():
    """Return cropdetect_stderr for building cropdetect output."""
    return cropdetect_stderr


@pytest.fixture
def failing_response():
    """FakeRunner response that raises ProbeInvocationError."""
    return failing
