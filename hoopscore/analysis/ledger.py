"""Score ledger with pace and plausibility guards."""

import logging
import math
from enum import Enum

from hoopscore.core.config import ScoringConfig
from hoopscore.core.models import Team

logger = logging.getLogger(__name__)


class Rejection(str, Enum):
    """Why a consensus basket was not credited."""

    UNKNOWN_TEAM = "unknown_team"
    TOO_SOON = "too_soon"
    PACE = "pace"
    SCORE_CEILING = "score_ceiling"


class ScoreLedger:
    """
    Cumulative score for the whole run.

    Only `confirm_basket` changes the score. Invariants:
    - each increment is exactly `points_per_basket`
    - the combined score never exceeds `max_total_score`
    - confirmations are at least `min_time_between_scores` wall-clock
      seconds apart
    - nothing is confirmed while a cooldown is running
    """

    def __init__(self, config: ScoringConfig | None = None):
        self.config = config or ScoringConfig()
        self.team_a_score = 0
        self.team_b_score = 0
        self.total_baskets = 0
        self.last_score_timestamp: float | None = None
        self.cooldown_frames_remaining = 0
        self.rejections: dict[Rejection, int] = {r: 0 for r in Rejection}

    @property
    def total_score(self) -> int:
        return self.team_a_score + self.team_b_score

    @property
    def cooldown_active(self) -> bool:
        return self.cooldown_frames_remaining > 0

    @property
    def rejected_count(self) -> int:
        return sum(self.rejections.values())

    def score_for(self, team: Team) -> int:
        if team is Team.TEAM_A:
            return self.team_a_score
        if team is Team.TEAM_B:
            return self.team_b_score
        return 0

    def tick_cooldown(self) -> None:
        """Consume one sampled frame of cooldown."""
        if self.cooldown_frames_remaining > 0:
            self.cooldown_frames_remaining -= 1

    def seconds_since_last_score(self, now: float) -> float:
        if self.last_score_timestamp is None:
            return math.inf
        return now - self.last_score_timestamp

    def can_score_at(self, now: float) -> bool:
        """Whether the minimum interval since the last basket has passed."""
        return self.seconds_since_last_score(now) >= self.config.min_time_between_scores

    def projected_pace(self, game_time: float) -> float:
        """Baskets per minute if one more basket were credited now."""
        minutes_elapsed = max(1.0, game_time / 60.0)
        return (self.total_baskets + 1) / minutes_elapsed

    def check(self, team: Team, game_time: float, now: float) -> Rejection | None:
        """Return the first guard a basket would fail, or None."""
        cfg = self.config
        if team is Team.UNKNOWN:
            return Rejection.UNKNOWN_TEAM
        if self.cooldown_active or not self.can_score_at(now):
            return Rejection.TOO_SOON
        if self.projected_pace(game_time) > cfg.expected_baskets_per_minute * 2:
            return Rejection.PACE
        if self.total_score + cfg.points_per_basket > cfg.max_total_score:
            return Rejection.SCORE_CEILING
        return None

    def confirm_basket(self, team: Team, game_time: float, now: float) -> bool:
        """Credit a basket to a team if every guard passes.

        Args:
            team: Consensus winner
            game_time: Game clock in seconds (frame index / fps)
            now: Wall-clock timestamp of the confirmation

        Returns:
            True if the basket was credited and cooldown started
        """
        rejection = self.check(team, game_time, now)
        if rejection is not None:
            self.rejections[rejection] += 1
            logger.info(
                f"Rejected {team.value} basket at {game_time:.1f}s: {rejection.value} "
                f"(pace {self.projected_pace(game_time):.1f}/min, score "
                f"{self.team_a_score}-{self.team_b_score})"
            )
            return False

        points = self.config.points_per_basket
        if team is Team.TEAM_A:
            self.team_a_score += points
        else:
            self.team_b_score += points
        self.total_baskets += 1
        self.last_score_timestamp = now
        self.cooldown_frames_remaining = self.config.cooldown_frames

        logger.info(
            f"{team.value} scores at {game_time:.1f}s -> "
            f"{self.team_a_score}-{self.team_b_score}"
        )
        return True
