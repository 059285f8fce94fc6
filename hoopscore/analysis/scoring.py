"""Scoring event state machine.

Idle -> WindowOpen when the ball shows up near a basket. While the window
is open, frames `vote_start_frame..vote_end_frame` each add a team vote to
a bounded FIFO; once the FIFO is full, a clear majority is sent to the
ledger. A credited basket starts a cooldown during which no window can
open. Windows that never reach a credited basket close after
`window_timeout_frames`.
"""

import logging
import time
from collections import Counter, deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from hoopscore.analysis.attribution import TeamAttributor
from hoopscore.analysis.ledger import ScoreLedger
from hoopscore.analysis.possession import PossessionTracker
from hoopscore.core.config import ScoringConfig
from hoopscore.core.models import (
    BasketLocation,
    CourtRegions,
    DetectionVote,
    Frame,
    ProximityResult,
    ScoreEvent,
    Team,
)

logger = logging.getLogger(__name__)


def find_consensus(
    votes: Iterable[DetectionVote],
    score_threshold: int,
    team_detection_ratio: float,
) -> Team | None:
    """Return the team a full vote FIFO agrees on, if any.

    A team wins when it holds at least `score_threshold * team_detection_ratio`
    votes and strictly more than the other team. UNKNOWN votes take up
    space in the FIFO but never count for either team.
    """
    votes = list(votes)
    if len(votes) < score_threshold:
        return None

    counts = Counter(v.team for v in votes)
    required = score_threshold * team_detection_ratio
    for team in (Team.TEAM_A, Team.TEAM_B):
        if counts[team] >= required and counts[team] > counts[team.other]:
            return team
    return None


@dataclass
class ScoringWindow:
    """The single scoring window; `is_open` False means idle."""

    capacity: int
    is_open: bool = False
    frames_since_opened: int = 0
    basket_location: BasketLocation | None = None
    votes: deque = field(init=False)

    def __post_init__(self):
        self.votes = deque(maxlen=self.capacity)

    def open(self, basket_location: BasketLocation) -> None:
        self.is_open = True
        self.frames_since_opened = 0
        self.basket_location = basket_location
        self.votes.clear()

    def close(self) -> None:
        self.is_open = False
        self.frames_since_opened = 0
        self.basket_location = None
        self.votes.clear()

    def add_vote(self, vote: DetectionVote) -> None:
        """Push a vote, evicting the oldest when full."""
        self.votes.append(vote)


@dataclass
class AnalysisState:
    """Everything the main loop mutates while analyzing one video."""

    ledger: ScoreLedger
    window: ScoringWindow
    regions: CourtRegions | None = None
    events: list[ScoreEvent] = field(default_factory=list)
    possession: PossessionTracker = field(default_factory=PossessionTracker)
    frames_processed: int = 0
    frames_failed: int = 0
    windows_opened: int = 0
    windows_timed_out: int = 0
    consensus_events: int = 0
    last_frame_idx: int = 0
    last_game_time: float = 0.0


class ScoringStateMachine:
    """Drives the scoring window for each sampled frame."""

    def __init__(
        self,
        config: ScoringConfig,
        attributor: TeamAttributor,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.attributor = attributor
        self.clock = clock

    def new_state(self) -> AnalysisState:
        return AnalysisState(
            ledger=ScoreLedger(self.config),
            window=ScoringWindow(capacity=self.config.score_threshold),
        )

    def update(
        self,
        state: AnalysisState,
        frame: Frame,
        proximity: ProximityResult | None,
    ) -> ScoreEvent | None:
        """Advance the state machine by one sampled frame.

        Args:
            state: Analysis state owned by the caller
            frame: Current sampled frame
            proximity: Ball proximity for this frame; None when detection
                was skipped

        Returns:
            The credited basket, if this frame produced one
        """
        ledger = state.ledger
        window = state.window

        if ledger.cooldown_active:
            ledger.tick_cooldown()
            return None

        if not window.is_open:
            if proximity is not None and proximity.ball_near_basket:
                window.open(proximity.basket_location)
                state.windows_opened += 1
                logger.debug(
                    f"Scoring window opened at frame {frame.index} "
                    f"({window.basket_location.value} basket)"
                )
            return None

        window.frames_since_opened += 1
        elapsed = window.frames_since_opened

        if elapsed > self.config.window_timeout_frames:
            logger.debug(f"Scoring window timed out at frame {frame.index}")
            window.close()
            state.windows_timed_out += 1
            return None

        if not self.config.vote_start_frame <= elapsed <= self.config.vote_end_frame:
            return None

        if state.regions is None:
            raise RuntimeError("Regions must be calibrated before voting")

        team = self.attributor.vote(frame, state.regions, elapsed)
        window.add_vote(DetectionVote(team, window.basket_location, frame.index))
        return self._check_consensus(state, frame)

    def _check_consensus(self, state: AnalysisState, frame: Frame) -> ScoreEvent | None:
        ledger = state.ledger
        window = state.window
        now = self.clock()

        if len(window.votes) < self.config.score_threshold or not ledger.can_score_at(now):
            return None

        winner = find_consensus(
            window.votes, self.config.score_threshold, self.config.team_detection_ratio
        )
        if winner is None:
            return None

        state.consensus_events += 1
        if not ledger.confirm_basket(winner, frame.game_time, now):
            # Keep collecting; a later frame may still produce a valid basket
            return None

        event = ScoreEvent(
            team=winner,
            points=self.config.points_per_basket,
            basket_location=window.basket_location,
            frame_idx=frame.index,
            game_time=frame.game_time,
        )
        state.events.append(event)
        window.close()
        return event
