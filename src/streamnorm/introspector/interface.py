"""MediaIntrospector interface for stream metadata extraction."""

from pathlib import Path
from typing import Protocol

from streamnorm.domain.models import ProbeResult


class MediaIntrospectionError(Exception):
    """Raised when media introspection fails."""

    pass


class MediaIntrospector(Protocol):
    """Protocol for media introspection implementations.

    Implementations read per-stream metadata and the container duration
    of one input file.
    """

    def get_probe(self, path: Path) -> ProbeResult:
        """Extract stream metadata from a media file.

        Args:
            path: Path to the media file.

        Returns:
            ProbeResult with one StreamMetadata per stream.

        Raises:
            MediaIntrospectionError: If the file cannot be introspected.
        """
        ...
