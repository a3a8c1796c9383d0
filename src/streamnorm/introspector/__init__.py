"""Introspector module for streamnorm.

- MediaIntrospector: Protocol defining the introspection interface
- FFprobeIntrospector: Production implementation using ffprobe
- MediaIntrospectionError: Exception for introspection failures
- parse_ffprobe_output: Pure conversion of ffprobe JSON into a ProbeResult
"""

from streamnorm.introspector.ffprobe import FFprobeIntrospector
from streamnorm.introspector.interface import (
    MediaIntrospectionError,
    MediaIntrospector,
)
from streamnorm.introspector.parsers import parse_ffprobe_output

__all__ = [
    "MediaIntrospector",
    "MediaIntrospectionError",
    "FFprobeIntrospector",
    "parse_ffprobe_output",
]
