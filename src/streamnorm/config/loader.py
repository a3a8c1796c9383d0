"""Configuration loader with precedence handling.

Configuration is layered with the following precedence (highest to lowest):
1. CLI arguments
2. Profile (~/.streamnorm/profiles/<name>.yaml, via --profile)
3. Environment variables (STREAMNORM_*)
4. Config file (~/.streamnorm/config.toml)
5. Default values

Environment variables:
- STREAMNORM_CONFIG_PATH: Path to config file (overrides default location)
- STREAMNORM_FFMPEG_PATH / STREAMNORM_FFPROBE_PATH: Tool executables
- STREAMNORM_LANGUAGE, STREAMNORM_SCALE, STREAMNORM_AUTOCROP_INTERVALS,
  STREAMNORM_CROP_AGGREGATION, STREAMNORM_AUDIO_LEVEL, STREAMNORM_FORCE,
  STREAMNORM_AUDIO_TITLES, STREAMNORM_SUBTITLE_TITLES,
  STREAMNORM_DEFAULT_AUDIO, STREAMNORM_DEFAULT_SUBTITLE: Normalization options
- STREAMNORM_LOG_LEVEL, STREAMNORM_LOG_FILE, STREAMNORM_LOG_FORMAT: Logging
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from streamnorm.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
    source_from_profile,
)
from streamnorm.config.env import EnvReader
from streamnorm.config.models import AppConfig
from streamnorm.config.profiles import load_profile
from streamnorm.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".streamnorm"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


def get_default_config_path() -> Path:
    """Get the config file path, honoring STREAMNORM_CONFIG_PATH."""
    env_path = os.environ.get("STREAMNORM_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from a TOML file.

    Args:
        path: Path to config file. If None, uses the default location.
        strict: If True, raise ConfigError when the file cannot be parsed.
            If False, log a warning and continue with an empty config.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist.

    Raises:
        ConfigError: When strict=True and the file cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        if strict:
            raise ConfigError(f"Could not parse config file {path}: {e}") from e
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}


def get_config(
    config_path: Path | None = None,
    profile_name: str | None = None,
    cli_source: ConfigSource | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    profiles_dir: Path | None = None,
    *,
    strict: bool = False,
) -> AppConfig:
    """Get streamnorm configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides STREAMNORM_CONFIG_PATH).
        profile_name: Profile to apply over file and environment values.
        cli_source: Values given on the command line.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        profiles_dir: Optional profiles directory for testing.
        strict: If True, raise on config file parse failures.

    Returns:
        AppConfig with merged configuration.

    Raises:
        ConfigError: If the merged configuration is invalid.
        ProfileNotFoundError: If the profile does not exist.
        ProfileError: If the profile is invalid.
    """
    reader = env_reader or EnvReader()
    file_config: dict[str, Any] = load_config_file(config_path, strict=strict)

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    if profile_name:
        profile = load_profile(profile_name, profiles_dir)
        builder.apply(source_from_profile(profile), source_name="profile")
    if cli_source is not None:
        builder.apply(cli_source, source_name="cli")

    return builder.build()
