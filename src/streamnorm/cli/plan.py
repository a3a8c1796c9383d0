"""CLI plan command: compute normalization directives for a file."""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from pathlib import Path
from typing import Any

import click

from streamnorm.cli.exit_codes import ExitCode
from streamnorm.cli.options import (
    load_app_config,
    normalization_options,
    source_from_cli,
)
from streamnorm.cli.output import error_exit, warning_output
from streamnorm.config.models import NormalizationOptions
from streamnorm.domain.models import ProbeResult, StreamMap
from streamnorm.exceptions import ConfigError, ProcessingError, ShutdownRequestedError
from streamnorm.executor.ffmpeg_args import build_directive_args, build_map_args
from streamnorm.introspector import FFprobeIntrospector, MediaIntrospectionError
from streamnorm.tools.discovery import find_tool
from streamnorm.workflow import (
    StreamNormalizer,
    format_plan_human,
    format_plan_json,
    run_with_shutdown,
)

logger = logging.getLogger(__name__)


def _needs_ffmpeg(
    probe: ProbeResult, stream_map: StreamMap, options: NormalizationOptions
) -> bool:
    """True when any mapped stream has an analysis pass to run."""
    for entry in stream_map:
        metadata = probe.get_stream(entry.ref.stream_index)
        if metadata is None:
            continue
        if metadata.is_video and options.autocrop_intervals > 0:
            return True
        if metadata.is_audio and options.audio_level:
            return True
    return False


def probe_file(
    file_path: Path, ffprobe: Path | None, json_output: bool
) -> ProbeResult:
    """Probe a file, exiting with the matching code on failure."""
    if not file_path.exists():
        error_exit(
            f"File not found: {file_path}", ExitCode.TARGET_NOT_FOUND, json_output
        )

    try:
        introspector = FFprobeIntrospector(ffprobe)
    except MediaIntrospectionError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE, json_output)

    try:
        return introspector.get_probe(file_path)
    except MediaIntrospectionError as e:
        error_exit(
            f"Could not probe {file_path}: {e}", ExitCode.ANALYSIS_ERROR, json_output
        )


@click.command("plan")
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--map",
    "-m",
    "map_specs",
    multiple=True,
    metavar="INPUT:STREAM",
    help="Output stream mapping, in output order (default: every stream).",
)
@normalization_options
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["human", "json"]),
    default="human",
    help="Output format (default: human)",
)
@click.option(
    "--args",
    "show_args",
    is_flag=True,
    help="Also print the ffmpeg arguments that apply the directives.",
)
@click.pass_context
def plan_command(
    ctx: click.Context,
    file: Path,
    map_specs: tuple[str, ...],
    output_format: str,
    show_args: bool,
    **option_values: Any,
) -> None:
    """Compute stream titles, default flags and filters for FILE.

    Nothing is written: the directives are printed for review, or as ffmpeg
    arguments with --args. Exits with code 60 when directives were produced
    but a crop or loudness pass failed for some stream.
    """
    json_output = output_format == "json"
    config = load_app_config(ctx, source_from_cli(**option_values), json_output)
    options = config.normalize

    probe = probe_file(file, config.tools.ffprobe, json_output)

    try:
        if map_specs:
            stream_map = StreamMap.from_specs(map_specs)
        else:
            stream_map = StreamMap.from_probe(probe)
    except ValueError as e:
        error_exit(str(e), ExitCode.GENERAL_ERROR, json_output)

    ffmpeg = find_tool("ffmpeg", config.tools.ffmpeg)
    if ffmpeg is None and _needs_ffmpeg(probe, stream_map, options):
        error_exit(
            "ffmpeg is not installed or not in PATH. Install ffmpeg, or disable "
            "analysis with --autocrop-intervals 0 --no-audio-level",
            ExitCode.TOOL_NOT_AVAILABLE,
            json_output,
        )

    try:
        normalizer = StreamNormalizer.initialize(
            options,
            ffmpeg=ffmpeg or "ffmpeg",
            show_progress=not json_output and sys.stderr.isatty(),
        )
        changes = asyncio.run(
            run_with_shutdown(normalizer.compute_directives(probe, stream_map))
        )
    except ShutdownRequestedError:
        error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)
    except ConfigError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)
    except ProcessingError as e:
        error_exit(str(e), ExitCode.OPERATION_FAILED, json_output)

    if json_output:
        click.echo(format_plan_json(probe, stream_map, changes, options, show_args))
    else:
        click.echo(format_plan_human(probe, stream_map, changes, options))
        if show_args:
            click.echo("")
            args = build_map_args(changes, stream_map) + build_directive_args(changes)
            click.echo(shlex.join(args))

    if changes.has_errors:
        warning_output("Some analysis passes failed; see errors above", json_output)
        sys.exit(ExitCode.WARNINGS)

