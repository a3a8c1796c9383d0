"""Per-stream filter chain composition.

Each stream gets at most one chain. Stages consume the current frontier
label and publish a new one, so fragments always connect:

    [0:0]crop=1920:816:0:132[0-0-crop];[0-0-crop]scale=-2:720[0-0-scale]

Stages are evaluated in a fixed order: crop, scale, loudnorm.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from streamnorm.domain.models import (
    CropRegion,
    LoudnessMeasurement,
    StreamChange,
    StreamMetadata,
    StreamRef,
)

if TYPE_CHECKING:
    from streamnorm.config.models import NormalizationOptions

logger = logging.getLogger(__name__)

CROP = "crop"
SCALE = "scale"
LOUDNORM = "loudnorm"


@dataclass(frozen=True)
class FilterStage:
    """One filter with its stage name, e.g. ("scale", "scale=-2:720")."""

    name: str
    expression: str


@dataclass
class FilterChain:
    """Ordered, label-connected filter stages for one source stream."""

    ref: StreamRef
    stages: list[FilterStage] = field(default_factory=list)
    fragments: list[str] = field(default_factory=list)

    @property
    def frontier(self) -> str:
        """Label of the chain's current output."""
        if not self.stages:
            return self.ref.pad_label
        return self.ref.stage_label(self.stages[-1].name)

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def append(self, stage: FilterStage | None) -> FilterChain:
        """Connect a stage to the current frontier. None is ignored."""
        if stage is None:
            return self
        if stage.name in self.stage_names:
            raise ValueError(
                f"Stage '{stage.name}' already present for stream {self.ref.key}"
            )
        source = self.frontier
        output = self.ref.stage_label(stage.name)
        self.fragments.append(f"{source}{stage.expression}{output}")
        self.stages.append(stage)
        return self

    def render(self) -> str | None:
        """The chain as one filter graph fragment, or None if empty."""
        if not self.fragments:
            return None
        return ";".join(self.fragments)


def crop_stage(region: CropRegion | None) -> FilterStage | None:
    """Crop stage, only when black bars were actually detected."""
    if region is None or not region.has_offset:
        return None
    return FilterStage(CROP, region.expression)


def scale_stage(height: int | None, target: int) -> FilterStage | None:
    """Downscale stage, only when the source is taller than the target."""
    if target <= 0 or height is None or height <= target:
        return None
    return FilterStage(SCALE, f"scale=-2:{target}")


def loudnorm_stage(
    measurement: LoudnessMeasurement, options: NormalizationOptions
) -> FilterStage:
    """Second-pass loudnorm stage using first-pass measurements.

    Configured targets are appended after the measured values.
    """
    params = [
        f"measured_I={measurement.input_i:.2f}",
        f"measured_LRA={measurement.input_lra:.2f}",
        f"measured_TP={measurement.input_tp:.2f}",
        f"measured_thresh={measurement.input_thresh:.2f}",
    ]
    for name, value in (
        ("I", options.loudnorm_target_i),
        ("LRA", options.loudnorm_target_lra),
        ("TP", options.loudnorm_target_tp),
    ):
        if value is not None:
            params.append(f"{name}={value:g}")
    return FilterStage(LOUDNORM, "loudnorm=" + ":".join(params))


def build_stream_filters(
    ref: StreamRef,
    metadata: StreamMetadata,
    options: NormalizationOptions,
    crop: CropRegion | None = None,
    loudness: LoudnessMeasurement | None = None,
) -> FilterChain:
    """Compose the filter chain for one stream.

    Args:
        ref: Source stream reference (provides the labels).
        metadata: Probed metadata of the stream.
        options: Normalization options.
        crop: Aggregated crop region, if crop detection ran.
        loudness: First-pass loudness measurement, if it ran.

    Returns:
        The chain. It is empty when no stage applies.
    """
    chain = FilterChain(ref)
    if metadata.is_video:
        if options.autocrop_intervals > 0:
            chain.append(crop_stage(crop))
        chain.append(scale_stage(metadata.height, options.scale))
    elif metadata.is_audio and options.audio_level and loudness is not None:
        chain.append(loudnorm_stage(loudness, options))

    if chain.stages:
        logger.debug("Filter chain for %s: %s", ref.key, chain.render())
    return chain


def apply_chain(
    change: StreamChange, chain: FilterChain, options: NormalizationOptions
) -> None:
    """Record a chain's fragment and any encoder override on a StreamChange.

    Loudness-adjusted audio must be re-encoded, so a loudnorm stage forces
    the configured codec and bitrate.
    """
    change.filter_graph = chain.render()
    change.filter_output = chain.frontier if chain.stages else None
    if LOUDNORM in chain.stage_names:
        change.codec = options.loudnorm_codec
        change.quality = ("b", options.loudnorm_bitrate)
