"""Shared CLI options and configuration loading for commands."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from streamnorm.analysis.crop import CropAggregation
from streamnorm.cli.exit_codes import ExitCode
from streamnorm.cli.output import error_exit
from streamnorm.config import AppConfig, ConfigSource, get_config
from streamnorm.config.profiles import ProfileError, ProfileNotFoundError
from streamnorm.exceptions import ConfigError
from streamnorm.logging import configure_logging

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_NORMALIZATION_OPTIONS = (
    click.option(
        "--language",
        "-l",
        default=None,
        help="Target language: ISO 639-1/639-2 code or English name (default: eng).",
    ),
    click.option(
        "--audio-titles/--no-audio-titles",
        "normalize_audio_titles",
        default=None,
        help="Synthesize titles for audio streams (default: on).",
    ),
    click.option(
        "--subtitle-titles/--no-subtitle-titles",
        "normalize_subtitle_titles",
        default=None,
        help="Synthesize titles for subtitle streams (default: on).",
    ),
    click.option(
        "--force",
        is_flag=True,
        default=None,
        help="Overwrite existing stream titles.",
    ),
    click.option(
        "--default-audio/--no-default-audio",
        "set_default_audio",
        default=None,
        help="Mark the first target-language audio stream as default.",
    ),
    click.option(
        "--default-subtitle/--no-default-subtitle",
        "set_default_subtitle",
        default=None,
        help="Fall back to a default subtitle when no audio stream matches.",
    ),
    click.option(
        "--audio-level/--no-audio-level",
        "audio_level",
        default=None,
        help="Measure loudness and add a loudnorm filter to audio streams.",
    ),
    click.option(
        "--scale",
        type=click.IntRange(min=0),
        default=None,
        help="Downscale video taller than this many lines (0 disables).",
    ),
    click.option(
        "--autocrop-intervals",
        type=click.IntRange(min=0),
        default=None,
        help="Number of cropdetect samples per video stream (0 disables).",
    ),
    click.option(
        "--crop-aggregation",
        type=click.Choice([s.value for s in CropAggregation]),
        default=None,
        help="Whether one failed crop sample fails the stream (default: fail_fast).",
    ),
)


def normalization_options(func: F) -> F:
    """Attach the normalization option flags to a command."""
    for option in reversed(_NORMALIZATION_OPTIONS):
        func = option(func)
    return func


def source_from_cli(**values: Any) -> ConfigSource:
    """Build a ConfigSource from parsed normalization flags.

    Unknown keys are ignored so commands can pass their full kwargs.
    """
    known = {f.name for f in dataclasses.fields(ConfigSource)}
    return ConfigSource(**{k: v for k, v in values.items() if k in known})


def load_app_config(
    ctx: click.Context,
    cli_source: ConfigSource | None = None,
    json_output: bool = False,
) -> AppConfig:
    """Resolve configuration for a command and configure logging.

    Global options stored on the context by the main group are layered on
    top of cli_source. Configuration failures exit with CONFIG_ERROR or
    PROFILE_NOT_FOUND.
    """
    obj = ctx.obj or {}
    config_path: Path | None = obj.get("config_path")

    source = dataclasses.replace(
        cli_source or ConfigSource(),
        logging_level=obj.get("log_level"),
        logging_file=obj.get("log_file"),
        logging_format="json" if obj.get("log_json") else None,
    )

    try:
        config = get_config(
            config_path=config_path,
            profile_name=obj.get("profile"),
            cli_source=source,
            strict=config_path is not None,
        )
    except ProfileNotFoundError as e:
        error_exit(str(e), ExitCode.PROFILE_NOT_FOUND, json_output)
    except (ProfileError, ConfigError) as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)

    configure_logging(config.logging)
    logger.debug(
        "Configuration resolved: language=%s, profile=%s, config_file=%s",
        config.normalize.language,
        obj.get("profile") or "-",
        config_path or "default",
    )
    return config
