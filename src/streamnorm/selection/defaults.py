"""Default track selection.

Selection runs in two phases over the stream map, in map order:

1. Audio: the first audio stream in the target language becomes the
   default; every other audio stream is explicitly marked non-default.
2. Subtitles: only when no audio stream matched. The first subtitle in
   the target language that is not a commentary track becomes the
   default; other subtitles are marked non-default. Matching commentary
   subtitles are left untouched.

The selection is a pure function of the ordered streams, so the result
does not depend on how per-stream work is scheduled afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from streamnorm.domain.models import StreamMetadata
from streamnorm.language import UNKNOWN
from streamnorm.metadata.titles import is_commentary, language_from_tags

if TYPE_CHECKING:
    from streamnorm.config.models import NormalizationOptions

logger = logging.getLogger(__name__)


@dataclass
class DefaultSelection:
    """Default disposition flags keyed by output position."""

    flags: dict[int, int] = field(default_factory=dict)
    audio_position: int | None = None
    subtitle_position: int | None = None
    skipped_commentary: list[int] = field(default_factory=list)

    @property
    def audio_default_set(self) -> bool:
        return self.audio_position is not None

    @property
    def subtitle_default_set(self) -> bool:
        return self.subtitle_position is not None

    def disposition(self, position: int) -> str | None:
        """Metadata value for a position ("DISPOSITION:default=N"), or None."""
        flag = self.flags.get(position)
        if flag is None:
            return None
        return f"DISPOSITION:default={flag}"


def _select_audio(
    streams: Sequence[tuple[int, StreamMetadata]],
    target: str,
    selection: DefaultSelection,
) -> None:
    for position, metadata in streams:
        if not metadata.is_audio:
            continue
        if selection.audio_position is None and language_from_tags(metadata) == target:
            selection.audio_position = position
            selection.flags[position] = 1
            logger.debug(
                "Default audio set to stream %d at position %d",
                metadata.index,
                position,
            )
        else:
            selection.flags[position] = 0


def _select_subtitle(
    streams: Sequence[tuple[int, StreamMetadata]],
    target: str,
    selection: DefaultSelection,
) -> None:
    for position, metadata in streams:
        if not metadata.is_subtitle:
            continue
        candidate = (
            selection.subtitle_position is None
            and language_from_tags(metadata) == target
        )
        if not candidate:
            selection.flags[position] = 0
        elif is_commentary(metadata):
            selection.skipped_commentary.append(position)
            logger.debug(
                "Skipping subtitle stream %d (%r): commentary track",
                metadata.index,
                metadata.title,
            )
        else:
            selection.subtitle_position = position
            selection.flags[position] = 1
            logger.debug(
                "Default subtitle set to stream %d at position %d",
                metadata.index,
                position,
            )


def select_defaults(
    streams: Sequence[tuple[int, StreamMetadata]],
    target: str,
    options: NormalizationOptions,
) -> DefaultSelection:
    """Choose the default audio stream, falling back to a default subtitle.

    Args:
        streams: (output position, metadata) pairs in stream map order.
        target: Canonical name of the target language ("English").
        options: Normalization options (set_default_audio/subtitle).

    Returns:
        DefaultSelection. Positions without a flag get no disposition
        directive.
    """
    selection = DefaultSelection()
    if not target or target == UNKNOWN:
        logger.debug("No target language, skipping default track selection")
        return selection

    if options.set_default_audio:
        _select_audio(streams, target, selection)
    if selection.audio_default_set:
        return selection
    logger.debug("No audio stream matching %s, no default audio set", target)

    if options.set_default_subtitle:
        _select_subtitle(streams, target, selection)
        if not selection.subtitle_default_set:
            logger.debug(
                "No subtitle stream matching %s, no default subtitle set", target
            )
    return selection
