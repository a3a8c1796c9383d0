"""Stream metadata normalization: titles and channel labels."""

from .titles import (
    channel_label,
    is_commentary,
    language_from_tags,
    should_write_title,
    stream_title,
    title_directive,
)

__all__ = [
    "channel_label",
    "is_commentary",
    "language_from_tags",
    "should_write_title",
    "stream_title",
    "title_directive",
]
