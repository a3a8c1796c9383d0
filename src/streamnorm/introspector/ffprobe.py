"""FFprobe-based implementation of the MediaIntrospector protocol."""

import json
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from streamnorm.core.subprocess_utils import run_command
from streamnorm.domain.models import ProbeResult
from streamnorm.introspector.interface import MediaIntrospectionError
from streamnorm.introspector.parsers import parse_ffprobe_output
from streamnorm.tools.discovery import find_tool

# Corrupted files can make ffprobe hang
PROBE_TIMEOUT = 60


class FFprobeIntrospector:
    """ffprobe-based implementation of MediaIntrospector protocol."""

    def __init__(self, ffprobe_path: Path | None = None) -> None:
        """Initialize the introspector.

        Args:
            ffprobe_path: Optional explicit path to ffprobe. If not provided,
                ffprobe is looked up on PATH.

        Raises:
            MediaIntrospectionError: If ffprobe is not available.
        """
        self._ffprobe_path = find_tool("ffprobe", ffprobe_path)

        if self._ffprobe_path is None:
            raise MediaIntrospectionError(
                "ffprobe is not installed or not in PATH. "
                "Install ffmpeg, or configure a custom path via the "
                "STREAMNORM_FFPROBE_PATH environment variable or "
                "~/.streamnorm/config.toml"
            )

    @property
    def ffprobe_path(self) -> Path:
        return self._ffprobe_path

    def get_probe(self, path: Path) -> ProbeResult:
        """Extract stream metadata from a media file.

        Args:
            path: Path to the media file.

        Returns:
            ProbeResult with one StreamMetadata per stream.

        Raises:
            MediaIntrospectionError: If the file cannot be introspected.
        """
        if not path.exists():
            raise MediaIntrospectionError(f"File not found: {path}")

        try:
            ffprobe_output = self._run_ffprobe(path)
        except subprocess.TimeoutExpired as e:
            raise MediaIntrospectionError(
                f"ffprobe timed out for {path} after {e.timeout}s"
            ) from e
        except OSError as e:
            raise MediaIntrospectionError(
                f"Could not run ffprobe for {path}: {e}"
            ) from e
        except json.JSONDecodeError as e:
            raise MediaIntrospectionError(
                f"Invalid ffprobe output for {path}: {e}"
            ) from e

        return parse_ffprobe_output(path, ffprobe_output)

    def _run_ffprobe(self, path: Path) -> dict:
        """Run ffprobe and return parsed JSON output.

        Raises:
            subprocess.TimeoutExpired: If ffprobe hangs.
            json.JSONDecodeError: If output is not valid JSON.
            MediaIntrospectionError: If ffprobe fails or output is missing
                required keys.
        """
        stdout, stderr, returncode = run_command(
            [
                self._ffprobe_path,
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                path,
            ],
            timeout=PROBE_TIMEOUT,
        )
        if returncode != 0:
            raise MediaIntrospectionError(
                f"ffprobe failed for {path}: {stderr.strip() or returncode}"
            )
        data = json.loads(stdout)

        # Validate required keys are present
        if "streams" not in data:
            raise MediaIntrospectionError(
                f"Missing 'streams' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )
        if "format" not in data:
            raise MediaIntrospectionError(
                f"Missing 'format' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )

        return data
