"""Configuration management for HoopScore."""

from pathlib import Path
from typing import Optional

import yaml
from platformdirs import user_cache_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hoopscore.core.errors import ConfigError

HSV = tuple[int, int, int]


def _default_handoff_path() -> Path:
    """Image file overwritten on every external classifier call."""
    return Path(user_cache_dir("hoopscore")) / "classifier_frame.jpg"


def describe_validation_error(error: ValidationError) -> str:
    """One-line summary of the first validation failure."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "value"
    more = error.error_count() - 1
    suffix = f" (and {more} more)" if more > 0 else ""
    return f"{field}: {first['msg']}{suffix}"


# =============================================================================
# Nested Configuration Classes
# =============================================================================


class VideoConfig(BaseModel):
    """Frame sampling configuration."""

    model_config = ConfigDict(frozen=True)

    target_fps: float = Field(default=2.0, gt=0)  # Frames per second actually analyzed
    downscale: bool = True
    downscale_factor: float = Field(default=0.5, gt=0, le=1.0)


class RegionConfig(BaseModel):
    """Region fractions as (x, y, width, height) of the frame.

    Assumes a fixed camera framing for the whole video.
    """

    model_config = ConfigDict(frozen=True)

    top_basket: tuple[float, float, float, float] = (0.35, 0.05, 0.30, 0.25)
    bottom_basket: tuple[float, float, float, float] = (0.35, 0.70, 0.30, 0.25)
    court: tuple[float, float, float, float] = (0.10, 0.10, 0.80, 0.80)
    team_a_area: tuple[float, float, float, float] = (0.0, 0.0, 0.5, 1.0)
    team_b_area: tuple[float, float, float, float] = (0.5, 0.0, 0.5, 1.0)

    @model_validator(mode="after")
    def _check_fractions(self) -> "RegionConfig":
        for name in ("top_basket", "bottom_basket", "court", "team_a_area", "team_b_area"):
            x, y, w, h = getattr(self, name)
            if w <= 0 or h <= 0 or x < 0 or y < 0 or x + w > 1.0 or y + h > 1.0:
                raise ValueError(f"{name} must lie inside the unit frame, got {(x, y, w, h)}")
        return self


class BallDetectionConfig(BaseModel):
    """Ball proximity detector configuration (orange ball in HSV)."""

    model_config = ConfigDict(frozen=True)

    hsv_lower: HSV = (0, 100, 100)
    hsv_upper: HSV = (30, 255, 255)
    min_area: float = 50.0  # px^2 at processing resolution
    max_area: float = 400.0
    min_circularity: float = 0.7
    min_aspect_ratio: float = 0.8
    max_aspect_ratio: float = 1.2
    opening_kernel: int = 3

    @model_validator(mode="after")
    def _check_bounds(self) -> "BallDetectionConfig":
        if self.min_area > self.max_area:
            raise ValueError("min_area must not exceed max_area")
        if self.min_aspect_ratio > self.max_aspect_ratio:
            raise ValueError("min_aspect_ratio must not exceed max_aspect_ratio")
        return self


class JerseyConfig(BaseModel):
    """Jersey-color team attribution configuration."""

    model_config = ConfigDict(frozen=True)

    team_a_lower: HSV = (0, 0, 150)  # White
    team_a_upper: HSV = (180, 70, 255)
    team_b_lower: HSV = (95, 100, 30)  # Dark blue
    team_b_upper: HSV = (145, 255, 190)
    kernel_size: int = 5
    dilate_iterations: int = 2
    min_player_area: float = 500.0
    min_player_count: int = 2  # Winning count must exceed this
    player_ratio: float = 1.5
    pixel_ratio: float = 3.0
    min_pixel_floor: int = 1000
    possession_smoothing: float = Field(default=0.95, ge=0, lt=1.0)  # Weight kept per frame


class ExternalClassifierConfig(BaseModel):
    """Out-of-process image classifier handoff."""

    model_config = ConfigDict(frozen=True)

    command: Optional[list[str]] = None  # Disabled when unset
    timeout_seconds: float = Field(default=1.5, gt=0)
    handoff_path: Path = Field(default_factory=_default_handoff_path)


class ScoringConfig(BaseModel):
    """Scoring window, consensus and ledger guards."""

    model_config = ConfigDict(frozen=True)

    score_threshold: int = Field(default=3, ge=1)  # Vote FIFO size
    team_detection_ratio: float = Field(default=0.6, gt=0, le=1.0)
    vote_start_frame: int = 3
    vote_end_frame: int = 10
    external_classifier_frame: int = 5
    window_timeout_frames: int = 15
    cooldown_frames: int = 60
    min_time_between_scores: float = 5.0  # Wall-clock seconds
    points_per_basket: int = 2
    max_total_score: int = 50
    expected_baskets_per_minute: float = 2.0

    @model_validator(mode="after")
    def _check_window(self) -> "ScoringConfig":
        if not 0 < self.vote_start_frame <= self.vote_end_frame <= self.window_timeout_frames:
            raise ValueError(
                "vote frames must satisfy 0 < vote_start_frame <= vote_end_frame "
                "<= window_timeout_frames"
            )
        return self


class ReportingConfig(BaseModel):
    """Progress reporting and housekeeping."""

    model_config = ConfigDict(frozen=True)

    progress_interval: int = Field(default=100, ge=1)  # Processed frames between progress lines
    gc_interval: int = Field(default=1000, ge=1)
    max_key_moments: int = 10


# =============================================================================
# Main Configuration Class
# =============================================================================


class HoopScoreConfig(BaseSettings):
    """Configuration settings for HoopScore."""

    video: VideoConfig = Field(default_factory=VideoConfig)
    regions: RegionConfig = Field(default_factory=RegionConfig)
    ball: BallDetectionConfig = Field(default_factory=BallDetectionConfig)
    jersey: JerseyConfig = Field(default_factory=JerseyConfig)
    external_classifier: ExternalClassifierConfig = Field(
        default_factory=ExternalClassifierConfig
    )
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix="HOOPSCORE_",
        env_nested_delimiter="__",  # Allows HOOPSCORE_SCORING__COOLDOWN_FRAMES
        frozen=True,
    )

    # -------------------------------------------------------------------------
    # YAML Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: Path) -> "HoopScoreConfig":
        """Load configuration from YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
            return cls(**data) if data else cls()
        except ValidationError as e:
            raise ConfigError(
                f"Invalid configuration file {path}: {describe_validation_error(e)}",
                hint="Run 'hoopscore config' to see the expected layout",
            ) from e
        except (yaml.YAMLError, TypeError) as e:
            raise ConfigError(
                f"Invalid configuration file {path}: {e}",
                hint="Run 'hoopscore config' to see the expected layout",
            ) from e

    @classmethod
    def find_and_load(cls) -> "HoopScoreConfig":
        """Find and load config from standard locations."""
        locations = [
            Path.cwd() / "hoopscore.yaml",
            Path.home() / ".config" / "hoopscore" / "hoopscore.yaml",
        ]

        for path in locations:
            if path.exists():
                return cls.from_yaml(path)

        # Fall back to defaults + environment variables
        try:
            return cls()
        except ValidationError as e:
            raise ConfigError(
                f"Invalid HOOPSCORE_* environment setting {describe_validation_error(e)}",
                hint="Check or unset the HOOPSCORE_ environment variables",
            ) from e

    def to_yaml(self) -> str:
        """Dump the effective configuration as YAML."""
        return yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False)


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[HoopScoreConfig] = None


def get_config() -> HoopScoreConfig:
    """Get global configuration instance."""
    global _config
    if _config is None:
        _config = HoopScoreConfig.find_and_load()
    return _config


def set_config(config: HoopScoreConfig) -> None:
    """Set global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset global configuration instance (useful for testing)."""
    global _config
    _config = None
