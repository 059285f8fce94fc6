"""Team attribution for scoring windows.

Two interchangeable classifiers sit behind the `TeamClassifier` protocol:

- `ExternalProcessClassifier` hands the full-resolution frame to an
  out-of-process image classifier through a temporary image file and reads
  a single token from its stdout. Slow but higher confidence, so it is
  asked once per window.
- `JerseyColorClassifier` counts jersey-colored blobs on the court. Fast,
  used on every vote-eligible frame and whenever the external classifier
  is unavailable or inconclusive.

`TeamAttributor` combines the two into a single vote per frame.
"""

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import cv2
import numpy as np

from hoopscore.core.config import ExternalClassifierConfig, JerseyConfig
from hoopscore.core.models import CourtRegions, Frame, Team

logger = logging.getLogger(__name__)

_TOKENS = {
    Team.TEAM_A.value: Team.TEAM_A,
    Team.TEAM_B.value: Team.TEAM_B,
}


class TeamClassifier(Protocol):
    """Anything that can attribute a frame to a team."""

    def classify(self, frame: Frame, regions: CourtRegions) -> Team:
        ...


def parse_classifier_output(stdout: str) -> Team:
    """Map classifier stdout to a team; anything unexpected is inconclusive."""
    return _TOKENS.get(stdout.strip(), Team.UNKNOWN)


class ExternalProcessClassifier:
    """
    Runs an external image classifier with a bounded timeout.

    The process is invoked as `command + [image_path]`. It must print
    `TeamA` or `TeamB` on stdout; any other output, a non-zero exit code,
    anything on stderr, a missing executable or a timeout all count as
    inconclusive. On timeout the child is killed before returning.
    """

    def __init__(
        self,
        config: ExternalClassifierConfig,
        runner: Callable[..., Any] = subprocess.run,
    ):
        self.config = config
        self._run = runner

    @property
    def enabled(self) -> bool:
        return bool(self.config.command)

    def _write_handoff(self, image: np.ndarray) -> bool:
        path = self.config.handoff_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not cv2.imwrite(str(path), image):
                logger.warning(f"Could not write classifier image to {path}")
                return False
        except (OSError, cv2.error) as e:
            logger.warning(f"Could not write classifier image to {path}: {e}")
            return False
        return True

    def classify(self, frame: Frame, regions: CourtRegions | None = None) -> Team:
        if not self.enabled:
            return Team.UNKNOWN

        if not self._write_handoff(frame.original):
            return Team.UNKNOWN

        cmd = [*self.config.command, str(self.config.handoff_path)]
        try:
            result = self._run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                f"External classifier timed out after {self.config.timeout_seconds:.1f}s "
                f"at frame {frame.index}"
            )
            return Team.UNKNOWN
        except OSError as e:
            logger.warning(f"External classifier failed to start: {e}")
            return Team.UNKNOWN

        if result.returncode != 0:
            logger.warning(f"External classifier exited with code {result.returncode}")
            return Team.UNKNOWN
        if result.stderr and result.stderr.strip():
            logger.warning(f"External classifier reported an error: {result.stderr.strip()}")
            return Team.UNKNOWN

        team = parse_classifier_output(result.stdout or "")
        logger.debug(f"External classifier says {team.value} at frame {frame.index}")
        return team


@dataclass(frozen=True)
class JerseyCounts:
    """Per-team blob and pixel counts inside the court region."""

    players_a: int
    players_b: int
    pixels_a: int
    pixels_b: int


class JerseyColorClassifier:
    """Majority vote on jersey-colored blobs inside the court."""

    def __init__(self, config: JerseyConfig | None = None):
        self.config = config or JerseyConfig()
        cfg = self.config
        self._bounds = {
            Team.TEAM_A: (
                np.array(cfg.team_a_lower, dtype=np.uint8),
                np.array(cfg.team_a_upper, dtype=np.uint8),
            ),
            Team.TEAM_B: (
                np.array(cfg.team_b_lower, dtype=np.uint8),
                np.array(cfg.team_b_upper, dtype=np.uint8),
            ),
        }
        self._kernel = cv2.getStructuringElement(
            cv2.MORPH_ELLIPSE, (cfg.kernel_size, cfg.kernel_size)
        )

    def _team_mask(self, hsv: np.ndarray, team: Team) -> np.ndarray:
        lower, upper = self._bounds[team]
        mask = cv2.inRange(hsv, lower, upper)
        mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self._kernel)
        return cv2.dilate(mask, self._kernel, iterations=self.config.dilate_iterations)

    def _count_players(self, mask: np.ndarray) -> int:
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        return sum(1 for c in contours if cv2.contourArea(c) >= self.config.min_player_area)

    def count(self, court_image: np.ndarray) -> JerseyCounts:
        """Count jersey blobs and pixels for both teams in a court crop."""
        if court_image.size == 0:
            return JerseyCounts(0, 0, 0, 0)

        hsv = cv2.cvtColor(court_image, cv2.COLOR_BGR2HSV)
        mask_a = self._team_mask(hsv, Team.TEAM_A)
        mask_b = self._team_mask(hsv, Team.TEAM_B)

        return JerseyCounts(
            players_a=self._count_players(mask_a),
            players_b=self._count_players(mask_b),
            pixels_a=int(cv2.countNonZero(mask_a)),
            pixels_b=int(cv2.countNonZero(mask_b)),
        )

    def decide(self, counts: JerseyCounts) -> Team:
        """Turn counts into a team, falling back to raw pixel dominance."""
        cfg = self.config

        if counts.players_a > cfg.min_player_count and counts.players_a >= cfg.player_ratio * counts.players_b:
            return Team.TEAM_A
        if counts.players_b > cfg.min_player_count and counts.players_b >= cfg.player_ratio * counts.players_a:
            return Team.TEAM_B

        # Last resort: one jersey color clearly dominates the court
        if counts.pixels_a > cfg.pixel_ratio * counts.pixels_b and counts.pixels_a > cfg.min_pixel_floor:
            return Team.TEAM_A
        if counts.pixels_b > cfg.pixel_ratio * counts.pixels_a and counts.pixels_b > cfg.min_pixel_floor:
            return Team.TEAM_B

        return Team.UNKNOWN

    def classify(self, frame: Frame, regions: CourtRegions) -> Team:
        counts = self.count(regions.court.crop(frame.image))
        team = self.decide(counts)
        logger.debug(
            f"Jersey counts at frame {frame.index}: "
            f"A={counts.players_a} ({counts.pixels_a}px) "
            f"B={counts.players_b} ({counts.pixels_b}px) -> {team.value}"
        )
        return team


class TeamAttributor:
    """Produces one team vote per vote-eligible frame of a scoring window."""

    def __init__(
        self,
        fallback: TeamClassifier,
        external: TeamClassifier | None = None,
        external_frame: int = 5,
    ):
        self.fallback = fallback
        self.external = external
        self.external_frame = external_frame
        self.external_calls = 0
        self.external_inconclusive = 0

    def reset(self) -> None:
        """Clear per-run counters."""
        self.external_calls = 0
        self.external_inconclusive = 0

    def vote(self, frame: Frame, regions: CourtRegions, frames_since_opened: int) -> Team:
        """Attribute a frame, asking the external classifier mid-window only."""
        if self.external is not None and frames_since_opened == self.external_frame:
            self.external_calls += 1
            team = self.external.classify(frame, regions)
            if team is not Team.UNKNOWN:
                return team
            self.external_inconclusive += 1
            logger.info(f"External classifier inconclusive at frame {frame.index}, using jersey colors")

        return self.fallback.classify(frame, regions)
