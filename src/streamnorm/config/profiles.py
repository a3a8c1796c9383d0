"""Configuration profile management.

Profiles store named option sets (movies, anime, kids content, ...) as
YAML under ~/.streamnorm/profiles/ and are applied with --profile:

    name: anime
    description: Japanese audio first, keep existing titles
    normalize:
      language: jpn
      autocrop_intervals: 0
    logging:
      level: debug
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from streamnorm.config.models import (
    LoggingConfig,
    NormalizationOptions,
    ToolPathsConfig,
)

logger = logging.getLogger(__name__)

_PROFILE_NAME = re.compile(r"^[a-zA-Z0-9_-]+$")
_TOP_LEVEL_KEYS = frozenset({"name", "description", "normalize", "tools", "logging"})


class ProfileError(Exception):
    """Error loading or validating a profile."""

    pass


class ProfileNotFoundError(ProfileError):
    """Profile does not exist."""

    pass


@dataclass(frozen=True)
class Profile:
    """Named configuration profile.

    normalize holds only the option keys the profile sets; they are
    layered over the config file and environment.
    """

    name: str
    description: str | None = None
    normalize: dict[str, Any] = field(default_factory=dict)
    tools: ToolPathsConfig | None = None
    logging: LoggingConfig | None = None


def _check_section(
    section_name: str, data: Any, expected: set[str], profile_name: str
) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ProfileError(
            f"Section '{section_name}' of profile '{profile_name}' must be a mapping"
        )
    unknown_keys = set(data) - expected
    if unknown_keys:
        raise ProfileError(
            f"Unknown keys in '{section_name}' section of profile '{profile_name}': "
            f"{sorted(unknown_keys)}. Valid keys are: {sorted(expected)}"
        )
    return data


def _validate_and_construct(
    section_name: str,
    dataclass_type: type,
    data: Any,
    profile_name: str,
) -> Any:
    """Construct a dataclass, rejecting unknown keys.

    Raises:
        ProfileError: If unknown keys are present or construction fails.
    """
    expected_fields = {f.name for f in fields(dataclass_type)}
    data = _check_section(section_name, data, expected_fields, profile_name)
    try:
        return dataclass_type(**data)
    except (TypeError, ValueError) as e:
        raise ProfileError(
            f"Invalid '{section_name}' configuration in profile '{profile_name}': {e}"
        ) from e


def get_profiles_directory() -> Path:
    """Get the profiles directory path (~/.streamnorm/profiles/)."""
    return Path.home() / ".streamnorm" / "profiles"


def list_profiles(profiles_dir: Path | None = None) -> list[str]:
    """List available profile names (without .yaml extension)."""
    profiles_dir = profiles_dir or get_profiles_directory()
    if not profiles_dir.exists():
        return []

    return sorted(
        p.stem
        for p in profiles_dir.glob("*.yaml")
        if p.is_file() and not p.name.startswith(".")
    )


def load_profile(name: str, profiles_dir: Path | None = None) -> Profile:
    """Load a profile by name.

    Args:
        name: Profile name (without .yaml extension).
        profiles_dir: Directory to load from (default ~/.streamnorm/profiles).

    Returns:
        Loaded Profile.

    Raises:
        ProfileNotFoundError: If profile doesn't exist.
        ProfileError: If profile is invalid.
    """
    if not _PROFILE_NAME.match(name):
        raise ProfileError(f"Profile name must be alphanumeric (with - or _): {name}")

    profile_path = (profiles_dir or get_profiles_directory()) / f"{name}.yaml"
    if not profile_path.exists():
        raise ProfileNotFoundError(f"Profile not found: {name}")

    try:
        with open(profile_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML in profile {name}: {e}") from e

    data = _check_section("top-level", data, set(_TOP_LEVEL_KEYS), name)

    normalize = _check_section(
        "normalize",
        data.get("normalize") or {},
        set(NormalizationOptions.model_fields),
        name,
    )

    tools_config: ToolPathsConfig | None = None
    logging_config: LoggingConfig | None = None

    if data.get("tools"):
        tools_data = {
            key: Path(value).expanduser() if value else None
            for key, value in _check_section(
                "tools", data["tools"], {"ffmpeg", "ffprobe"}, name
            ).items()
        }
        tools_config = _validate_and_construct(
            "tools", ToolPathsConfig, tools_data, name
        )
    if data.get("logging"):
        logging_data = dict(
            _check_section(
                "logging",
                data["logging"],
                {f.name for f in fields(LoggingConfig)},
                name,
            )
        )
        if logging_data.get("file"):
            logging_data["file"] = Path(logging_data["file"]).expanduser()
        logging_config = _validate_and_construct(
            "logging", LoggingConfig, logging_data, name
        )

    logger.debug("Loaded profile %s from %s", name, profile_path)
    return Profile(
        name=data.get("name", name),
        description=data.get("description"),
        normalize=dict(normalize),
        tools=tools_config,
        logging=logging_config,
    )
