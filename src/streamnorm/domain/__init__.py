"""Domain models for streamnorm.

Usage:
    from streamnorm.domain import StreamMetadata, StreamMap, ChangeSet
"""

from .models import (
    AUDIO,
    SUBTITLE,
    VIDEO,
    ChangeSet,
    CropRegion,
    LoudnessMeasurement,
    ProbeResult,
    ProgressEvent,
    StreamChange,
    StreamMap,
    StreamMapEntry,
    StreamMetadata,
    StreamRef,
)

__all__ = [
    # Stream types
    "AUDIO",
    "SUBTITLE",
    "VIDEO",
    # Input side
    "ProbeResult",
    "StreamMetadata",
    "StreamRef",
    "StreamMap",
    "StreamMapEntry",
    # Analysis results
    "CropRegion",
    "LoudnessMeasurement",
    "ProgressEvent",
    # Output side
    "ChangeSet",
    "StreamChange",
]
