"""HoopScore - Basketball game video analysis CLI."""

__version__ = "0.1.0"

# Core exports for library usage
from hoopscore.analysis.analyzer import GameAnalyzer
from hoopscore.core.config import HoopScoreConfig, get_config
from hoopscore.core.models import GameResult, ScoreEvent, Team

__all__ = [
    "GameAnalyzer",
    "GameResult",
    "HoopScoreConfig",
    "ScoreEvent",
    "Team",
    "get_config",
]
