"""Analysis passes: loudness measurement and crop detection."""

from streamnorm.analysis.crop import (
    CropAggregation,
    aggregate_crop,
    detect_crop,
    parse_cropdetect_output,
    sample_offsets,
)
from streamnorm.analysis.loudness import measure_loudness, parse_loudnorm_output

__all__ = [
    "CropAggregation",
    "aggregate_crop",
    "detect_crop",
    "measure_loudness",
    "parse_cropdetect_output",
    "parse_loudnorm_output",
    "sample_offsets",
]
