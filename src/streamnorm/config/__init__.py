"""Configuration management for streamnorm.

Configuration is layered with the following precedence:
1. CLI flags (highest priority)
2. Profile (--profile)
3. Environment variables (STREAMNORM_*)
4. Config file (~/.streamnorm/config.toml)
5. Default values (lowest priority)
"""

from streamnorm.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
    source_from_profile,
)
from streamnorm.config.env import EnvReader
from streamnorm.config.loader import (
    get_config,
    get_default_config_path,
    load_config_file,
)
from streamnorm.config.logging_factory import build_logging_config
from streamnorm.config.models import (
    AppConfig,
    LoggingConfig,
    NormalizationOptions,
    ToolPathsConfig,
)
from streamnorm.config.profiles import (
    Profile,
    ProfileError,
    ProfileNotFoundError,
    list_profiles,
    load_profile,
)

__all__ = [
    # Models
    "AppConfig",
    "LoggingConfig",
    "NormalizationOptions",
    "ToolPathsConfig",
    # Layering
    "ConfigBuilder",
    "ConfigSource",
    "EnvReader",
    "source_from_env",
    "source_from_file",
    "source_from_profile",
    # Loader
    "get_config",
    "get_default_config_path",
    "load_config_file",
    "build_logging_config",
    # Profiles
    "Profile",
    "ProfileError",
    "ProfileNotFoundError",
    "list_profiles",
    "load_profile",
]
