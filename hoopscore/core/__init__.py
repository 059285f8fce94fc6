"""Core domain models and configuration."""

from hoopscore.core.config import HoopScoreConfig, get_config
from hoopscore.core.errors import ConfigError, HoopScoreError, VideoError
from hoopscore.core.models import (
    BasketLocation,
    CourtRegions,
    DetectionVote,
    Frame,
    GameResult,
    ProximityResult,
    Region,
    RegionLabel,
    ScoreEvent,
    Team,
    VideoInfo,
)

__all__ = [
    "BasketLocation",
    "ConfigError",
    "CourtRegions",
    "DetectionVote",
    "Frame",
    "GameResult",
    "HoopScoreConfig",
    "HoopScoreError",
    "ProximityResult",
    "Region",
    "RegionLabel",
    "ScoreEvent",
    "Team",
    "VideoError",
    "VideoInfo",
    "get_config",
]
