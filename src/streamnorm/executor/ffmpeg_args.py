"""Render a ChangeSet as ffmpeg command line arguments.

The transcode itself is run elsewhere. These helpers produce the
arguments that apply the computed directives:

    -filter_complex "[0:0]crop=1920:816:0:132[0-0-crop]"
    -map "[0-0-crop]" -map 0:1
    -c:1 aac -b:1 320k
    -metadata:s:1 "title=English (AAC 5.1)" -disposition... etc.
"""

from __future__ import annotations

from streamnorm.domain.models import ChangeSet, StreamMap


def build_map_args(changes: ChangeSet, stream_map: StreamMap) -> list[str]:
    """-map arguments in output order.

    Streams with a filter chain are mapped from the chain's final label,
    all others directly from the input stream.
    """
    args: list[str] = []
    for entry in sorted(stream_map, key=lambda e: e.position):
        change = changes.streams.get(entry.position)
        if change is not None and change.filter_output:
            args.extend(["-map", change.filter_output])
        else:
            args.extend(["-map", entry.ref.key])
    return args


def build_directive_args(changes: ChangeSet) -> list[str]:
    """Arguments for filters, encoder overrides and stream metadata.

    Returns:
        One -filter_complex with the joined graph (if any filters), then per
        position: -c:<pos>/-b:<pos> overrides and -metadata:s:<pos> values.
    """
    args: list[str] = []

    graph = changes.filter_complex
    if graph:
        args.extend(["-filter_complex", graph])

    for position in sorted(changes.streams):
        change = changes.streams[position]
        if change.codec:
            args.extend([f"-c:{position}", change.codec])
        if change.quality:
            option, value = change.quality
            args.extend([f"-{option}:{position}", value])
        for value in change.metadata:
            args.extend([f"-{change.metadata_key(position)}", value])

    return args
