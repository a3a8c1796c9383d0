"""Stream normalization directives for media transcoding.

streamnorm inspects a media file's streams and computes the per-stream
directives a transcoder applies: normalized titles, default-track flags,
and filter chains for crop removal, downscaling and loudness normalization.
"""

__version__ = "0.1.0"
