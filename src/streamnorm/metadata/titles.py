"""Display title synthesis for audio and subtitle streams.

Titles follow a fixed layout so that players list tracks consistently:

    English (AAC 5.1)     audio, with channel label
    English (FLAC)        audio, unknown channel count
    Japanese (SUBRIP)     subtitle
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from streamnorm.domain.models import StreamMetadata
from streamnorm.language import normalize_language

if TYPE_CHECKING:
    from streamnorm.config.models import NormalizationOptions

logger = logging.getLogger(__name__)

COMMENTARY_MARKER = "commentary"


def channel_label(count: int | None) -> str:
    """Format a channel count as a surround label.

    1 and 2 channels are "Mono" and "Stereo". Even counts render as the bare
    number and odd counts as "<count-1>.1" (5 -> "4.1", 7 -> "6.1").
    Unknown or zero counts produce an empty label.
    """
    if not count or count < 0:
        return ""
    if count == 1:
        return "Mono"
    if count == 2:
        return "Stereo"
    if count % 2 == 0:
        return str(count)
    return f"{count - 1}.1"


def language_from_tags(metadata: StreamMetadata) -> str:
    """Canonical language name of a stream, "Unknown" when untagged."""
    return normalize_language(metadata.language)


def stream_title(metadata: StreamMetadata) -> str:
    """Build the normalized display title for a stream."""
    language = language_from_tags(metadata)
    codec = (metadata.codec_name or "unknown").upper()
    if metadata.is_audio:
        label = channel_label(metadata.channels)
        if label:
            return f"{language} ({codec} {label})"
    return f"{language} ({codec})"


def should_write_title(
    metadata: StreamMetadata, options: NormalizationOptions
) -> bool:
    """Decide whether a stream's title gets (re)written.

    Audio and subtitle titles are controlled by their own option flags.
    Existing titles are kept unless force is set. Video titles are left
    alone.
    """
    if metadata.is_audio:
        enabled = options.normalize_audio_titles
    elif metadata.is_subtitle:
        enabled = options.normalize_subtitle_titles
    else:
        return False
    if not enabled:
        return False
    return not metadata.title or options.force


def title_directive(
    metadata: StreamMetadata, options: NormalizationOptions
) -> str | None:
    """Return the "title=..." metadata value for a stream, or None."""
    if not should_write_title(metadata, options):
        return None
    title = stream_title(metadata)
    logger.debug(
        "Setting title for %s stream %d: %r -> %r",
        metadata.codec_type,
        metadata.index,
        metadata.title,
        title,
    )
    return f"title={title}"


def is_commentary(metadata: StreamMetadata) -> bool:
    """True when the stream's current title marks it as a commentary track."""
    return bool(metadata.title) and COMMENTARY_MARKER in metadata.title.casefold()
