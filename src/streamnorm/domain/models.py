"""Domain models for streamnorm.

These models describe probed stream metadata, the ordered stream map, and
the directives computed for each output stream. They are independent of
ffprobe's JSON layout; see streamnorm.introspector.parsers for the mapping.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Stream types that carry a default disposition or a title we manage
AUDIO = "audio"
SUBTITLE = "subtitle"
VIDEO = "video"


@dataclass(frozen=True)
class StreamMetadata:
    """Read-only metadata for one probed stream."""

    index: int
    codec_type: str  # "audio", "subtitle", "video", "attachment", "other"
    codec_name: str | None = None
    language: str | None = None  # Raw language tag, not normalized
    title: str | None = None
    # Audio-specific
    channels: int | None = None
    # Video-specific
    width: int | None = None
    height: int | None = None
    # Stream duration, falling back to the container duration
    duration_seconds: float | None = None

    @property
    def is_audio(self) -> bool:
        return self.codec_type == AUDIO

    @property
    def is_subtitle(self) -> bool:
        return self.codec_type == SUBTITLE

    @property
    def is_video(self) -> bool:
        return self.codec_type == VIDEO


@dataclass
class ProbeResult:
    """Metadata for one input file as reported by the probing tool."""

    file_path: Path
    container_duration: float | None
    streams: dict[int, StreamMetadata]
    warnings: list[str] = field(default_factory=list)

    def get_stream(self, index: int) -> StreamMetadata | None:
        """Return the stream with the given index, or None."""
        return self.streams.get(index)


@dataclass(frozen=True)
class StreamRef:
    """Reference to a stream of a specific input file."""

    input_index: int
    stream_index: int

    @classmethod
    def parse(cls, spec: str) -> StreamRef:
        """Parse a "<input>:<stream>" specifier such as "0:2".

        Raises:
            ValueError: If the specifier is not two non-negative integers.
        """
        input_part, sep, stream_part = spec.strip().partition(":")
        if not sep or not input_part.isdigit() or not stream_part.isdigit():
            raise ValueError(
                f"Invalid stream reference '{spec}'. Expected <input>:<stream>, "
                "e.g. 0:1"
            )
        return cls(int(input_part), int(stream_part))

    @property
    def key(self) -> str:
        """Compact identifier used for logs and progress ("0:2")."""
        return f"{self.input_index}:{self.stream_index}"

    @property
    def pad_label(self) -> str:
        """Filter graph input pad label ("[0:2]")."""
        return f"[{self.input_index}:{self.stream_index}]"

    def stage_label(self, stage: str) -> str:
        """Output label for a named filter stage ("[0-2-crop]")."""
        return f"[{self.input_index}-{self.stream_index}-{stage}]"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class StreamMapEntry:
    """One output stream position fed by one input stream."""

    position: int
    ref: StreamRef


class StreamMap:
    """Ordered mapping of output positions to input streams.

    Iteration order is the map order, which decides tie-breaks in default
    track selection.
    """

    def __init__(self, entries: Iterable[StreamMapEntry]) -> None:
        self._entries: tuple[StreamMapEntry, ...] = tuple(entries)
        positions = [e.position for e in self._entries]
        if len(set(positions)) != len(positions):
            raise ValueError("Stream map contains duplicate output positions")
        refs = [e.ref for e in self._entries]
        if len(set(refs)) != len(refs):
            raise ValueError("Stream map maps the same input stream more than once")

    @classmethod
    def from_specs(cls, specs: Iterable[str]) -> StreamMap:
        """Build a map from stream specifiers, assigning positions 0..n-1."""
        return cls(
            StreamMapEntry(position=pos, ref=StreamRef.parse(spec))
            for pos, spec in enumerate(specs)
        )

    @classmethod
    def from_probe(cls, probe: ProbeResult, input_index: int = 0) -> StreamMap:
        """Map every probed stream, in stream index order."""
        return cls(
            StreamMapEntry(position=pos, ref=StreamRef(input_index, index))
            for pos, index in enumerate(sorted(probe.streams))
        )

    def __iter__(self) -> Iterator[StreamMapEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        specs = ", ".join(f"{e.position}={e.ref.key}" for e in self._entries)
        return f"StreamMap({specs})"


@dataclass(frozen=True)
class CropRegion:
    """Rectangle of actual picture content reported by cropdetect."""

    width: int
    height: int
    x: int
    y: int

    @property
    def has_offset(self) -> bool:
        """True when letterboxing or pillarboxing was detected."""
        return self.x > 0 or self.y > 0

    @property
    def expression(self) -> str:
        return f"crop={self.width}:{self.height}:{self.x}:{self.y}"


@dataclass(frozen=True)
class LoudnessMeasurement:
    """First-pass EBU R128 statistics reported by the loudnorm filter."""

    input_i: float
    input_lra: float
    input_tp: float
    input_thresh: float
    target_offset: float | None = None


@dataclass(frozen=True)
class ProgressEvent:
    """Latest completion percentage for one in-flight measurement."""

    stream: str
    percent: float


@dataclass
class StreamChange:
    """Directives computed for one output stream position."""

    metadata: list[str] = field(default_factory=list)
    codec: str | None = None
    quality: tuple[str, str] | None = None  # (option, value), e.g. ("b", "320k")
    filter_graph: str | None = None
    filter_output: str | None = None
    errors: list[str] = field(default_factory=list)

    @staticmethod
    def metadata_key(position: int) -> str:
        return f"metadata:s:{position}"

    @property
    def is_empty(self) -> bool:
        return not (self.metadata or self.codec or self.quality or self.filter_graph)

    def to_dict(self, position: int) -> dict[str, Any]:
        data: dict[str, Any] = {self.metadata_key(position): list(self.metadata)}
        if self.codec:
            data["codec"] = self.codec
        if self.quality:
            data["quality"] = {self.quality[0]: self.quality[1]}
        if self.filter_graph:
            data["filter"] = self.filter_graph
            data["filter_output"] = self.filter_output
        if self.errors:
            data["errors"] = list(self.errors)
        return data


@dataclass
class ChangeSet:
    """Directives for every mapped output stream, keyed by position."""

    streams: dict[int, StreamChange] = field(default_factory=dict)
    audio_default_set: bool = False
    subtitle_default_set: bool = False

    @property
    def filter_complex(self) -> str | None:
        """All non-empty stream fragments joined into one filter graph."""
        fragments = [c.filter_graph for c in self.streams.values() if c.filter_graph]
        return ";".join(fragments) if fragments else None

    @property
    def has_errors(self) -> bool:
        return any(c.errors for c in self.streams.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "streams": {
                str(pos): change.to_dict(pos) for pos, change in self.streams.items()
            },
            "audio_default_set": self.audio_default_set,
            "subtitle_default_set": self.subtitle_default_set,
            "filter_complex": self.filter_complex,
        }
