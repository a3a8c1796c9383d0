"""Subprocess utilities for external tool invocation.

Two wrappers are provided:

- run_command: blocking call used for quick metadata probes (ffprobe).
- run_tool_async: asyncio call used for analysis passes (ffmpeg) that run
  concurrently per stream. Diagnostic lines are streamed to a callback as
  they arrive so progress can be reported while the pass is running.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import re
import subprocess  # nosec B404 - subprocess is required for ffmpeg invocation
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from streamnorm.exceptions import ProbeInvocationError

logger = logging.getLogger(__name__)

# ffmpeg terminates progress updates with "\r" rather than "\n"
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_READ_CHUNK = 4096


def _command_name(args: Sequence[str]) -> str:
    return args[0].split("/")[-1] if args else "unknown"


def run_command(
    args: list[str | Path],
    timeout: int = 120,
    errors: str = "replace",
    **kwargs: Any,
) -> tuple[str, str, int]:
    """Run an external command with standard error handling.

    Args:
        args: Command and arguments. Path objects are converted to strings.
        timeout: Timeout in seconds (default 120).
        errors: Error handling mode for text decoding (default "replace").
        **kwargs: Additional subprocess.run arguments.

    Returns:
        Tuple of (stdout, stderr, returncode).

    Raises:
        subprocess.TimeoutExpired: If the command times out. subprocess.run
            kills the child before raising.
        OSError: If the executable cannot be started.
    """
    str_args = [str(arg) for arg in args]
    command_name = _command_name(str_args)

    logger.debug(
        "Executing command: %s",
        " ".join(str_args),
        extra={"command": command_name, "arg_count": len(str_args)},
    )

    start_time = time.monotonic()

    try:
        result = subprocess.run(  # nosec B603 - caller validates args
            str_args,
            capture_output=True,
            text=True,
            errors=errors,
            timeout=timeout,
            **kwargs,
        )
    except subprocess.TimeoutExpired:
        logger.warning(
            "Command timed out after %ds: %s",
            timeout,
            " ".join(str_args[:3]) + ("..." if len(str_args) > 3 else ""),
            extra={
                "command": command_name,
                "timeout_seconds": timeout,
                "elapsed_seconds": round(time.monotonic() - start_time, 3),
            },
        )
        raise

    logger.debug(
        "Command completed",
        extra={
            "command": command_name,
            "elapsed_seconds": round(time.monotonic() - start_time, 3),
            "returncode": result.returncode,
        },
    )
    return result.stdout or "", result.stderr or "", result.returncode


@dataclass(frozen=True)
class ToolOutput:
    """Captured output of a finished external tool invocation."""

    stdout: str
    stderr: str
    returncode: int


LineCallback = Callable[[str], None]
ToolRunner = Callable[..., Awaitable[ToolOutput]]


async def _read_lines(
    stream: asyncio.StreamReader,
    sink: list[str],
    on_line: LineCallback | None,
) -> None:
    """Drain a pipe, splitting on any line terminator ffmpeg uses."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    while True:
        chunk = await stream.read(_READ_CHUNK)
        text = decoder.decode(chunk, final=not chunk)
        if not chunk and not text:
            break
        sink.append(text)
        if on_line is None:
            continue
        pending += text
        *lines, pending = _LINE_BREAK.split(pending)
        for line in lines:
            if line:
                on_line(line)
    if on_line is not None and pending:
        on_line(pending)


async def run_tool_async(
    args: Sequence[str | Path],
    on_stderr_line: LineCallback | None = None,
    timeout: float | None = None,
) -> ToolOutput:
    """Run an external tool without blocking the event loop.

    Args:
        args: Command and arguments. Path objects are converted to strings.
        on_stderr_line: Called with each diagnostic line as it arrives.
        timeout: Optional wall-clock limit in seconds.

    Returns:
        ToolOutput with the complete stdout and stderr text.

    Raises:
        ProbeInvocationError: If the tool cannot be started, times out or
            exits with a non-zero status.
        asyncio.CancelledError: If the awaiting task is cancelled. The child
            process is killed before the cancellation propagates.
    """
    str_args = [str(arg) for arg in args]
    command_name = _command_name(str_args)

    logger.debug(
        "Executing command: %s",
        " ".join(str_args),
        extra={"command": command_name, "arg_count": len(str_args)},
    )
    start_time = time.monotonic()

    try:
        process = await asyncio.create_subprocess_exec(
            *str_args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProbeInvocationError(
            str_args, None, reason=f"could not be started: {e}"
        ) from e

    stdout_parts: list[str] = []
    stderr_parts: list[str] = []

    async def communicate() -> int:
        await asyncio.gather(
            _read_lines(process.stdout, stdout_parts, None),
            _read_lines(process.stderr, stderr_parts, on_stderr_line),
        )
        return await process.wait()

    try:
        returncode = await asyncio.wait_for(communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        _kill(process)
        await process.wait()
        raise ProbeInvocationError(
            str_args,
            None,
            "".join(stderr_parts),
            reason=f"timed out after {timeout}s",
        ) from e
    except asyncio.CancelledError:
        _kill(process)
        await process.wait()
        logger.debug("Killed %s after cancellation", command_name)
        raise

    stderr = "".join(stderr_parts)
    logger.debug(
        "Command completed",
        extra={
            "command": command_name,
            "elapsed_seconds": round(time.monotonic() - start_time, 3),
            "returncode": returncode,
        },
    )
    if returncode != 0:
        raise ProbeInvocationError(str_args, returncode, stderr)
    return ToolOutput("".join(stdout_parts), stderr, returncode)


def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
