"""Configuration builder with explicit layering.

ConfigBuilder composes ConfigSources in increasing precedence and builds
the final AppConfig. Each source only carries the values it specifies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from streamnorm.config.env import EnvReader
from streamnorm.config.models import (
    AppConfig,
    LoggingConfig,
    NormalizationOptions,
    ToolPathsConfig,
)
from streamnorm.exceptions import ConfigError

if TYPE_CHECKING:
    from streamnorm.config.profiles import Profile

logger = logging.getLogger(__name__)

# ConfigSource field names that map one-to-one onto NormalizationOptions
NORMALIZE_FIELDS: tuple[str, ...] = tuple(NormalizationOptions.model_fields)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Normalization options
    normalize_audio_titles: bool | None = None
    normalize_subtitle_titles: bool | None = None
    force: bool | None = None
    set_default_audio: bool | None = None
    set_default_subtitle: bool | None = None
    language: str | None = None
    audio_level: bool | None = None
    scale: int | None = None
    autocrop_intervals: int | None = None
    crop_aggregation: str | None = None
    loudnorm_codec: str | None = None
    loudnorm_bitrate: str | None = None
    loudnorm_target_i: float | None = None
    loudnorm_target_lra: float | None = None
    loudnorm_target_tp: float | None = None

    # Tool paths
    ffmpeg_path: Path | None = None
    ffprobe_path: Path | None = None

    # Logging config
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


def format_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"])
        message = item["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class ConfigBuilder:
    """Builds AppConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config), source_name="file")
        builder.apply(source_from_env(reader), source_name="env")
        builder.apply(cli_source, source_name="cli")
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._origins: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply a configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label recorded for each value it sets.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._origins[field_obj.name] = source_name

    def origin(self, key: str) -> str:
        """Name of the source that supplied a value ("default" if unset)."""
        return self._origins.get(key, "default")

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> AppConfig:
        """Build the final AppConfig with defaults for unset values.

        Raises:
            ConfigError: If the combined values fail validation.
        """
        option_values = {
            name: self._values[name]
            for name in NORMALIZE_FIELDS
            if name in self._values
        }
        try:
            normalize = NormalizationOptions(**option_values)
        except ValidationError as e:
            origins = sorted(
                {self.origin(str(item["loc"][0])) for item in e.errors() if item["loc"]}
            )
            raise ConfigError(
                f"Invalid normalization options (from {', '.join(origins)}): "
                f"{format_validation_error(e)}"
            ) from e

        tools = ToolPathsConfig(
            ffmpeg=self._get("ffmpeg_path", None),
            ffprobe=self._get("ffprobe_path", None),
        )

        try:
            logging_config = LoggingConfig(
                level=self._get("logging_level", "info"),
                file=self._get("logging_file", None),
                format=self._get("logging_format", "text"),
                include_stderr=self._get("logging_include_stderr", False),
                max_bytes=self._get("logging_max_bytes", 10_485_760),
                backup_count=self._get("logging_backup_count", 5),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid logging configuration: {e}") from e

        return AppConfig(normalize=normalize, tools=tools, logging=logging_config)


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def _normalize_values(section: dict[str, Any], origin: str) -> dict[str, Any]:
    """Keep known normalization keys, warning about the rest."""
    unknown = sorted(set(section) - set(NORMALIZE_FIELDS))
    if unknown:
        logger.warning("Ignoring unknown [normalize] keys in %s: %s", origin, unknown)
    return {k: v for k, v in section.items() if k in NORMALIZE_FIELDS}


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from a parsed TOML config file.

    Recognized tables are [normalize], [tools] and [logging].
    """
    normalize = file_config.get("normalize", {})
    tools = file_config.get("tools", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        **_normalize_values(normalize, "config file"),
        ffmpeg_path=_optional_path(tools.get("ffmpeg")),
        ffprobe_path=_optional_path(tools.get("ffprobe")),
        logging_level=logging_conf.get("level"),
        logging_file=_optional_path(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from STREAMNORM_* environment variables."""
    return ConfigSource(
        # Normalization
        audio_level=reader.get_bool("STREAMNORM_AUDIO_LEVEL"),
        normalize_audio_titles=reader.get_bool("STREAMNORM_AUDIO_TITLES"),
        normalize_subtitle_titles=reader.get_bool("STREAMNORM_SUBTITLE_TITLES"),
        force=reader.get_bool("STREAMNORM_FORCE"),
        set_default_audio=reader.get_bool("STREAMNORM_DEFAULT_AUDIO"),
        set_default_subtitle=reader.get_bool("STREAMNORM_DEFAULT_SUBTITLE"),
        language=reader.get_str("STREAMNORM_LANGUAGE"),
        scale=reader.get_int("STREAMNORM_SCALE"),
        autocrop_intervals=reader.get_int("STREAMNORM_AUTOCROP_INTERVALS"),
        crop_aggregation=reader.get_str("STREAMNORM_CROP_AGGREGATION"),
        # Tool paths
        ffmpeg_path=reader.get_path("STREAMNORM_FFMPEG_PATH"),
        ffprobe_path=reader.get_path("STREAMNORM_FFPROBE_PATH"),
        # Logging
        logging_level=reader.get_str("STREAMNORM_LOG_LEVEL"),
        logging_file=reader.get_path("STREAMNORM_LOG_FILE", must_exist=False),
        logging_format=reader.get_str("STREAMNORM_LOG_FORMAT"),
    )


def source_from_profile(profile: Profile) -> ConfigSource:
    """Create ConfigSource from a loaded profile."""
    tools = profile.tools
    logging_conf = profile.logging
    return ConfigSource(
        **dict(profile.normalize),
        ffmpeg_path=tools.ffmpeg if tools else None,
        ffprobe_path=tools.ffprobe if tools else None,
        logging_level=logging_conf.level if logging_conf else None,
        logging_file=logging_conf.file if logging_conf else None,
        logging_format=logging_conf.format if logging_conf else None,
        logging_include_stderr=(
            logging_conf.include_stderr if logging_conf else None
        ),
        logging_max_bytes=logging_conf.max_bytes if logging_conf else None,
        logging_backup_count=logging_conf.backup_count if logging_conf else None,
    )
