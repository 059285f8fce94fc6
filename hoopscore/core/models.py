"""Core domain models for HoopScore."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import numpy as np


class Team(str, Enum):
    """Team a basket is attributed to."""

    TEAM_A = "TeamA"
    TEAM_B = "TeamB"
    UNKNOWN = "Unknown"

    @property
    def other(self) -> "Team":
        """Opposing team (UNKNOWN has none)."""
        if self is Team.TEAM_A:
            return Team.TEAM_B
        if self is Team.TEAM_B:
            return Team.TEAM_A
        return Team.UNKNOWN


class BasketLocation(str, Enum):
    """Which basket a scoring window was opened at."""

    TOP = "top"
    BOTTOM = "bottom"


class RegionLabel(str, Enum):
    """Semantic zones of the frame."""

    TOP_BASKET = "top_basket"
    BOTTOM_BASKET = "bottom_basket"
    COURT = "court"
    TEAM_A_AREA = "team_a_area"
    TEAM_B_AREA = "team_b_area"


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle tagged with a semantic label."""

    label: RegionLabel
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        """Get region area in pixels."""
        return self.width * self.height

    def contains(self, px: float, py: float) -> bool:
        """Check whether a point lies inside the region."""
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height

    def crop(self, image: np.ndarray) -> np.ndarray:
        """Return a view of the image restricted to this region."""
        return image[self.y:self.y + self.height, self.x:self.x + self.width]


@dataclass(frozen=True)
class CourtRegions:
    """The fixed set of regions computed once per video."""

    top_basket: Region
    bottom_basket: Region
    court: Region
    team_a_area: Region
    team_b_area: Region

    def get(self, label: RegionLabel) -> Region:
        """Get the region for a label."""
        return getattr(self, label.value)

    def basket(self, location: BasketLocation) -> Region:
        """Get the basket region for a basket location."""
        return self.top_basket if location is BasketLocation.TOP else self.bottom_basket


@dataclass
class VideoInfo:
    """Video file metadata."""

    path: Path
    duration: float
    fps: float
    width: int
    height: int
    frame_count: int
    codec: str = "unknown"


@dataclass
class Frame:
    """A sampled frame, valid for a single loop iteration."""

    index: int
    game_time: float
    image: np.ndarray  # Processing resolution (BGR)
    original: np.ndarray  # Full resolution (BGR)

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


@dataclass(frozen=True)
class ProximityResult:
    """Per-frame ball proximity flags."""

    ball_in_top: bool = False
    ball_in_bottom: bool = False

    @property
    def ball_near_basket(self) -> bool:
        return self.ball_in_top or self.ball_in_bottom

    @property
    def basket_location(self) -> BasketLocation | None:
        """Basket the ball was seen at, preferring the top basket."""
        if self.ball_in_top:
            return BasketLocation.TOP
        if self.ball_in_bottom:
            return BasketLocation.BOTTOM
        return None


@dataclass(frozen=True)
class DetectionVote:
    """One team attribution vote inside a scoring window."""

    team: Team
    basket_location: BasketLocation
    frame_idx: int


@dataclass(frozen=True)
class ScoreEvent:
    """A confirmed basket."""

    team: Team
    points: int
    basket_location: BasketLocation
    frame_idx: int
    game_time: float

    @property
    def description(self) -> str:
        return f"{self.team.value} scores {self.points} points ({self.basket_location.value} basket)"


@dataclass
class GameResult:
    """Outcome of analyzing a whole video."""

    video_info: VideoInfo
    team_a_score: int = 0
    team_b_score: int = 0
    total_baskets: int = 0
    duration: float = 0.0  # Game time covered, seconds
    events: list[ScoreEvent] = field(default_factory=list)
    rejected_events: int = 0
    frames_processed: int = 0
    frames_failed: int = 0
    processing_time: float = 0.0
    team_a_possession: float = 0.0  # Percent, running average
    team_b_possession: float = 0.0
    confidence_score: float = 100.0
    cancelled: bool = False

    @property
    def total_score(self) -> int:
        return self.team_a_score + self.team_b_score

    @property
    def scoring_pace(self) -> float:
        """Baskets per minute of game time."""
        minutes = self.duration / 60.0
        if minutes <= 0:
            return 0.0
        return self.total_baskets / minutes

    @property
    def processing_fps(self) -> float:
        if self.processing_time <= 0:
            return 0.0
        return self.frames_processed / self.processing_time

    @property
    def winner(self) -> Team | None:
        """Winning team, or None on a tie."""
        if self.team_a_score > self.team_b_score:
            return Team.TEAM_A
        if self.team_b_score > self.team_a_score:
            return Team.TEAM_B
        return None

    def to_dict(self) -> dict:
        """Serialize for JSON export."""
        winner = self.winner
        return {
            "video": {
                "path": str(self.video_info.path),
                "duration": self.video_info.duration,
                "fps": self.video_info.fps,
                "width": self.video_info.width,
                "height": self.video_info.height,
                "frame_count": self.video_info.frame_count,
            },
            "score": {
                "team_a": self.team_a_score,
                "team_b": self.team_b_score,
                "winner": winner.value if winner else "tie",
            },
            "possession": {
                "team_a": round(self.team_a_possession, 1),
                "team_b": round(self.team_b_possession, 1),
            },
            "summary": {
                "total_baskets": self.total_baskets,
                "duration": self.duration,
                "scoring_pace": round(self.scoring_pace, 3),
                "rejected_events": self.rejected_events,
                "confidence_score": self.confidence_score,
                "cancelled": self.cancelled,
            },
            "processing": {
                "frames_processed": self.frames_processed,
                "frames_failed": self.frames_failed,
                "processing_time": round(self.processing_time, 3),
                "processing_fps": round(self.processing_fps, 2),
            },
            "events": [
                {
                    "team": e.team.value,
                    "points": e.points,
                    "basket": e.basket_location.value,
                    "frame": e.frame_idx,
                    "game_time": e.game_time,
                }
                for e in self.events
            ],
        }
