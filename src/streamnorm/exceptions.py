"""Exception hierarchy for streamnorm."""

from __future__ import annotations

from collections.abc import Sequence


class StreamNormError(Exception):
    """Base exception for all streamnorm errors."""


class ConfigError(StreamNormError):
    """Normalization options are invalid.

    Raised before any stream is processed.
    """


class ProcessingError(StreamNormError):
    """Directive computation could not run for the given input."""


class ProbeInvocationError(StreamNormError):
    """An external analysis pass (ffmpeg) failed to run or exited non-zero."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None,
        stderr: str = "",
        reason: str | None = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        tool = self.command[0].split("/")[-1] if self.command else "command"
        if reason is None:
            reason = f"exited with code {returncode}"
        super().__init__(f"{tool} {reason}")


class AnalysisParseError(StreamNormError):
    """Diagnostic output of an analysis pass could not be parsed."""


class MeasurementParseError(AnalysisParseError):
    """The loudnorm measurement block is missing or malformed."""


class CropParseError(AnalysisParseError):
    """No crop rectangle could be read from cropdetect output."""


class ShutdownRequestedError(StreamNormError):
    """Processing was stopped by SIGINT or SIGTERM."""
