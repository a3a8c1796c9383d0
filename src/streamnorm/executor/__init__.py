"""Rendering of computed directives for the transcoding executor."""

from streamnorm.executor.ffmpeg_args import build_directive_args, build_map_args

__all__ = ["build_directive_args", "build_map_args"]
