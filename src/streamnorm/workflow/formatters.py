"""Formatters for computed directives and synthesized titles.

Shared by the plan and titles CLI commands.
"""

from __future__ import annotations

import json
from typing import Any

from streamnorm.config.models import NormalizationOptions
from streamnorm.domain.models import ChangeSet, ProbeResult, StreamMap
from streamnorm.executor.ffmpeg_args import build_directive_args, build_map_args
from streamnorm.metadata.titles import should_write_title, stream_title


def _stream_label(probe: ProbeResult, stream_map: StreamMap, position: int) -> str:
    for entry in stream_map:
        if entry.position != position:
            continue
        metadata = probe.get_stream(entry.ref.stream_index)
        codec_type = metadata.codec_type if metadata else "unknown"
        return f"#{position} ({entry.ref.key}, {codec_type})"
    return f"#{position}"


def format_plan_human(
    probe: ProbeResult,
    stream_map: StreamMap,
    changes: ChangeSet,
    options: NormalizationOptions,
) -> str:
    """Format a ChangeSet for terminal output.

    Args:
        probe: Probe of the input file.
        stream_map: Map the directives were computed for.
        changes: Computed directives.
        options: Options used for the run.

    Returns:
        Multi-line string, one block per output position.
    """
    lines: list[str] = [
        f"File: {probe.file_path}",
        f"Target language: {options.target_language}",
        "",
        "Streams:",
    ]

    for position, change in changes.streams.items():
        lines.append(f"  {_stream_label(probe, stream_map, position)}")
        if change.is_empty and not change.errors:
            lines.append("    (no changes)")
        for value in change.metadata:
            lines.append(f"    {change.metadata_key(position)}: {value}")
        if change.codec:
            lines.append(f"    codec: {change.codec}")
        if change.quality:
            lines.append(f"    {change.quality[0]}: {change.quality[1]}")
        if change.filter_graph:
            lines.append(f"    filter: {change.filter_graph}")
        for error in change.errors:
            lines.append(f"    error: {error}")

    if not changes.streams:
        lines.append("  (no streams mapped)")

    lines.append("")
    lines.append(f"Default audio set: {'yes' if changes.audio_default_set else 'no'}")
    lines.append(
        f"Default subtitle set: {'yes' if changes.subtitle_default_set else 'no'}"
    )
    if changes.filter_complex:
        lines.append(f"Filter graph: {changes.filter_complex}")

    if probe.warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in probe.warnings:
            lines.append(f"  - {warning}")

    return "\n".join(lines)


def format_plan_json(
    probe: ProbeResult,
    stream_map: StreamMap,
    changes: ChangeSet,
    options: NormalizationOptions,
    include_args: bool = False,
) -> str:
    """Format a ChangeSet as JSON."""
    data: dict[str, Any] = {
        "file": str(probe.file_path),
        "target_language": options.target_language,
        **changes.to_dict(),
        "warnings": list(probe.warnings),
    }
    if include_args:
        data["args"] = build_map_args(changes, stream_map) + build_directive_args(
            changes
        )
    return json.dumps(data, indent=2)


def format_titles(probe: ProbeResult, options: NormalizationOptions) -> str:
    """One line per stream: current title, synthesized title, and the action."""
    lines: list[str] = [f"File: {probe.file_path}", ""]
    for index in sorted(probe.streams):
        metadata = probe.streams[index]
        if not (metadata.is_audio or metadata.is_subtitle):
            continue
        current = repr(metadata.title) if metadata.title else "(none)"
        action = "write" if should_write_title(metadata, options) else "keep"
        lines.append(
            f"  {index}: {metadata.codec_type:<8} {current} -> "
            f"{stream_title(metadata)!r} [{action}]"
        )
    if len(lines) == 2:
        lines.append("  (no audio or subtitle streams)")
    return "\n".join(lines)
