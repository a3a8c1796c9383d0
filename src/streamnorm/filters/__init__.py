"""Filter graph composition."""

from streamnorm.filters.graph import (
    FilterChain,
    FilterStage,
    apply_chain,
    build_stream_filters,
    crop_stage,
    loudnorm_stage,
    scale_stage,
)

__all__ = [
    "FilterChain",
    "FilterStage",
    "apply_chain",
    "build_stream_filters",
    "crop_stage",
    "loudnorm_stage",
    "scale_stage",
]
