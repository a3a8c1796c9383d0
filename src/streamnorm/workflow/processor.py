"""Directive computation for one input file.

StreamNormalizer turns probed stream metadata into a ChangeSet:

1. Every stream map entry is resolved to its metadata, in map order.
2. Default dispositions are chosen by one sequential pass over the map.
3. One task per entry computes its title and runs its analysis passes
   (crop detection for video, loudness measurement for audio)
   concurrently, then composes its filter chain.
4. Results are merged by output position in map order, and the default
   flags are appended.

A failed analysis pass only drops that stream's dependent filter stage;
the error is recorded on the stream's StreamChange.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from streamnorm.analysis.crop import detect_crop
from streamnorm.analysis.loudness import measure_loudness
from streamnorm.config.builder import format_validation_error
from streamnorm.config.models import NormalizationOptions
from streamnorm.core.subprocess_utils import ToolRunner, run_tool_async
from streamnorm.domain.models import (
    ChangeSet,
    ProbeResult,
    ProgressEvent,
    StreamChange,
    StreamMap,
    StreamMapEntry,
    StreamMetadata,
)
from streamnorm.exceptions import (
    ConfigError,
    CropParseError,
    MeasurementParseError,
    ProbeInvocationError,
    ProcessingError,
)
from streamnorm.filters.graph import apply_chain, build_stream_filters
from streamnorm.logging.context import stream_context
from streamnorm.metadata.titles import title_directive
from streamnorm.selection.defaults import DefaultSelection, select_defaults
from streamnorm.workflow.progress import DEFAULT_INTERVAL, ProgressReporter

logger = logging.getLogger(__name__)

# Errors that abort a single analysis stage rather than the whole run
STAGE_ERRORS = (ProbeInvocationError, MeasurementParseError, CropParseError)


@dataclass(frozen=True)
class ResolvedStream:
    """A stream map entry paired with its probed metadata."""

    entry: StreamMapEntry
    metadata: StreamMetadata

    @property
    def position(self) -> int:
        return self.entry.position


class StreamNormalizer:
    """Computes normalization directives for the streams of one file."""

    def __init__(
        self,
        options: NormalizationOptions,
        ffmpeg: str | Path = "ffmpeg",
        runner: ToolRunner = run_tool_async,
        show_progress: bool = True,
        progress_interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.options = options
        self.ffmpeg = ffmpeg
        self.runner = runner
        self.show_progress = show_progress
        self.progress_interval = progress_interval

    @classmethod
    def initialize(
        cls,
        options: NormalizationOptions | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> StreamNormalizer:
        """Validate options and build a normalizer.

        Args:
            options: Validated options, or raw option values to validate.
            **kwargs: Passed through to the constructor.

        Raises:
            ConfigError: If the options are invalid, including a target
                language that cannot be resolved.
        """
        if not isinstance(options, NormalizationOptions):
            try:
                options = NormalizationOptions(**(options or {}))
            except ValidationError as e:
                raise ConfigError(format_validation_error(e)) from e
        logger.debug(
            "Normalizer initialized for target language %s", options.target_language
        )
        return cls(options, **kwargs)

    def resolve(
        self, probe: ProbeResult, stream_map: StreamMap
    ) -> list[ResolvedStream]:
        """Pair every map entry with its metadata, in map order.

        Raises:
            ProcessingError: If an entry references a stream the probe does
                not contain.
        """
        resolved = []
        for entry in stream_map:
            metadata = None
            if entry.ref.input_index == 0:
                metadata = probe.get_stream(entry.ref.stream_index)
            if metadata is None:
                raise ProcessingError(
                    f"Unknown stream reference {entry.ref.key} "
                    f"(output position {entry.position}) for {probe.file_path}"
                )
            resolved.append(ResolvedStream(entry, metadata))
        return resolved

    async def compute_directives(
        self, probe: ProbeResult, stream_map: StreamMap | None = None
    ) -> ChangeSet:
        """Compute the directives for every mapped stream.

        Args:
            probe: Probed metadata of the input file.
            stream_map: Output stream map. Defaults to every probed stream.

        Returns:
            ChangeSet keyed by output position, in map order.

        Raises:
            ProcessingError: If the map references an unknown stream.
        """
        if stream_map is None:
            stream_map = StreamMap.from_probe(probe)
        resolved = self.resolve(probe, stream_map)

        selection = select_defaults(
            [(r.position, r.metadata) for r in resolved],
            self.options.target_language,
            self.options,
        )

        reporter: contextlib.AbstractAsyncContextManager[Any]
        if self.options.audio_level:
            reporter = ProgressReporter(
                interval=self.progress_interval, enabled=self.show_progress
            )
        else:
            reporter = contextlib.nullcontext()

        async with reporter as active:
            publish = active.publish if active is not None else None
            changes = await asyncio.gather(
                *(
                    self._process_stream(item, probe.file_path, publish)
                    for item in resolved
                )
            )

        return self._merge(resolved, changes, selection)

    def _merge(
        self,
        resolved: list[ResolvedStream],
        changes: list[StreamChange],
        selection: DefaultSelection,
    ) -> ChangeSet:
        change_set = ChangeSet(
            audio_default_set=selection.audio_default_set,
            subtitle_default_set=selection.subtitle_default_set,
        )
        for item, change in zip(resolved, changes):
            disposition = selection.disposition(item.position)
            if disposition is not None:
                change.metadata.append(disposition)
            change_set.streams[item.position] = change

        logger.info(
            "Computed directives for %d streams (%d with filters, %d with errors)",
            len(change_set.streams),
            sum(1 for c in change_set.streams.values() if c.filter_graph),
            sum(1 for c in change_set.streams.values() if c.errors),
        )
        return change_set

    async def _process_stream(
        self,
        item: ResolvedStream,
        source: Path,
        progress: Callable[[ProgressEvent], None] | None,
    ) -> StreamChange:
        ref = item.entry.ref
        metadata = item.metadata
        options = self.options

        with stream_context(ref.key, source):
            change = StreamChange()

            title = title_directive(metadata, options)
            if title is not None:
                change.metadata.append(title)

            crop = None
            if metadata.is_video and options.autocrop_intervals > 0:
                try:
                    crop = await detect_crop(
                        source,
                        ref,
                        metadata.duration_seconds,
                        count=options.autocrop_intervals,
                        runner=self.runner,
                        strategy=options.crop_aggregation,
                        ffmpeg=self.ffmpeg,
                    )
                except STAGE_ERRORS as e:
                    logger.warning("Crop detection failed for stream %s: %s", ref, e)
                    change.errors.append(f"crop: {e}")

            loudness = None
            if metadata.is_audio and options.audio_level:
                try:
                    loudness = await measure_loudness(
                        source,
                        ref,
                        metadata.duration_seconds,
                        runner=self.runner,
                        progress=progress,
                        ffmpeg=self.ffmpeg,
                    )
                except STAGE_ERRORS as e:
                    logger.warning(
                        "Loudness measurement failed for stream %s: %s", ref, e
                    )
                    change.errors.append(f"loudnorm: {e}")

            chain = build_stream_filters(ref, metadata, options, crop, loudness)
            apply_chain(change, chain, options)
            return change
