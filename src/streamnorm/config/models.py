"""Configuration models for streamnorm.

NormalizationOptions is a frozen pydantic model: it is validated once when
a run starts and read-only afterwards. The surrounding application settings
(tool paths, logging) are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from streamnorm.analysis.crop import CropAggregation
from streamnorm.language import is_known_language, normalize_language

INVALID_LANGUAGE_MESSAGE = (
    "Invalid language parameter provided. Use ISO 639-1 Code, "
    "ISO 639-2 Code, or full english name."
)


class NormalizationOptions(BaseModel):
    """Options controlling which directives are computed for a file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Titles
    normalize_audio_titles: bool = True
    normalize_subtitle_titles: bool = True
    force: bool = False

    # Default track selection
    set_default_audio: bool = True
    set_default_subtitle: bool = True
    language: str = "eng"

    # Filters
    audio_level: bool = False
    scale: int = Field(default=0, ge=0)
    autocrop_intervals: int = Field(default=12, ge=0)
    crop_aggregation: CropAggregation = CropAggregation.FAIL_FAST

    # Re-encode settings for loudness-normalized audio
    loudnorm_codec: str = "aac"
    loudnorm_bitrate: str = "320k"
    loudnorm_target_i: float | None = Field(default=None, ge=-70.0, le=-5.0)
    loudnorm_target_lra: float | None = Field(default=None, ge=1.0, le=50.0)
    loudnorm_target_tp: float | None = Field(default=None, ge=-9.0, le=0.0)

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        """Reject languages the lookup tables cannot resolve."""
        if not is_known_language(v):
            raise ValueError(INVALID_LANGUAGE_MESSAGE)
        return v.strip()

    @field_validator("loudnorm_codec", "loudnorm_bitrate")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @property
    def target_language(self) -> str:
        """Canonical English name of the target language."""
        return normalize_language(self.language)


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths."""

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging output."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {self.max_bytes}")
        if self.backup_count < 0:
            raise ValueError(
                f"backup_count must be non-negative, got {self.backup_count}"
            )


@dataclass
class AppConfig:
    """Complete resolved configuration for one invocation."""

    normalize: NormalizationOptions = field(default_factory=NormalizationOptions)
    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
