"""Offline game analysis loop.

Reads a recorded game once, front to back, and estimates the final score.
Processing is strictly sequential; the only out-of-process work is the
optional external classifier, which is bounded by a timeout.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from hoopscore.analysis.attribution import (
    ExternalProcessClassifier,
    JerseyColorClassifier,
    TeamAttributor,
    TeamClassifier,
)
from hoopscore.analysis.ball_detector import BallProximityDetector
from hoopscore.analysis.ledger import Rejection
from hoopscore.analysis.possession import PossessionTracker
from hoopscore.analysis.regions import RegionCalibrator
from hoopscore.analysis.scoring import AnalysisState, ScoringStateMachine
from hoopscore.core.config import HoopScoreConfig, ScoringConfig, get_config
from hoopscore.core.memory import cleanup_memory
from hoopscore.core.models import Frame, GameResult, VideoInfo
from hoopscore.core.video import FrameSampler, Video
from hoopscore.output.summary import SummaryReporter

logger = logging.getLogger(__name__)


def compute_confidence(result: GameResult, config: ScoringConfig, ceiling_hit: bool = False) -> float:
    """Heuristic 0-100 confidence in the estimated score.

    Penalizes an implausible scoring pace, any basket refused at the score
    ceiling and a high share of failed frames. The failed-frame penalty
    stands in for the usual bonus for a long ball trajectory, which is not
    tracked here, so the result never rises above 100 for good behavior.
    """
    confidence = 100.0

    # Unusual scoring patterns
    if result.scoring_pace > config.expected_baskets_per_minute * 3:
        confidence -= 20
    if ceiling_hit:
        confidence -= 15
    if result.frames_processed and result.frames_failed / result.frames_processed > 0.1:
        confidence -= 10

    return max(0.0, min(100.0, confidence))


class GameAnalyzer:
    """
    Estimates the final score of a recorded pickup game.

    Per sampled frame: calibrate regions (first frame of each run only),
    update the possession share from jersey counts, look for the
    ball near a basket (skipped during cooldown), then advance the scoring
    state machine, which asks for team votes mid-window and credits
    baskets through the ledger.
    """

    def __init__(
        self,
        config: HoopScoreConfig | None = None,
        classifier: TeamClassifier | None = None,
        external_classifier: TeamClassifier | None = None,
        reporter: SummaryReporter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            config: Analyzer configuration (global config when omitted)
            classifier: In-process team classifier (jersey colors by default)
            external_classifier: Slow classifier asked once per window
                (built from config when a command is configured)
            reporter: Progress / summary output; silent when omitted
            clock: Wall-clock source for the minimum scoring interval
        """
        self.config = config or get_config()
        cfg = self.config

        if external_classifier is None and cfg.external_classifier.command:
            external_classifier = ExternalProcessClassifier(cfg.external_classifier)

        self.ball_detector = BallProximityDetector(cfg.ball)
        self.jersey = JerseyColorClassifier(cfg.jersey)
        self.attributor = TeamAttributor(
            fallback=classifier or self.jersey,
            external=external_classifier,
            external_frame=cfg.scoring.external_classifier_frame,
        )
        self.state_machine = ScoringStateMachine(cfg.scoring, self.attributor, clock=clock)
        self.reporter = reporter

    def analyze(
        self,
        video_path: Path | str,
        limit_seconds: float | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> GameResult:
        """Analyze a video file.

        Raises:
            FileNotFoundError: If the video does not exist
            VideoError: If the video cannot be opened
        """
        with Video(video_path) as video:
            return self.analyze_video(video, limit_seconds=limit_seconds, should_cancel=should_cancel)

    def analyze_video(
        self,
        video: Video,
        limit_seconds: float | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> GameResult:
        """
        Run the analysis loop over an opened video.

        Args:
            video: Video to analyze
            limit_seconds: Only analyze first N seconds
            should_cancel: Polled once per sampled frame; returning True stops
                the loop and yields a partial result

        Returns:
            GameResult with the estimated score
        """
        cfg = self.config
        info = video.info  # Fails here if the video cannot be opened

        sampler = FrameSampler(
            video,
            target_fps=cfg.video.target_fps,
            downscale_factor=cfg.video.downscale_factor if cfg.video.downscale else None,
            limit_seconds=limit_seconds,
        )
        state = self.state_machine.new_state()
        state.possession = PossessionTracker(cfg.jersey.possession_smoothing)
        # Frame size can differ between videos
        calibrator = RegionCalibrator(cfg.regions)
        self.attributor.reset()

        logger.info(
            f"Analyzing {info.path.name}: {info.width}x{info.height} @ {info.fps:.1f}fps, "
            f"frame skip {sampler.frame_skip}"
        )
        if self.reporter:
            self.reporter.start(info, sampler.frame_skip)

        started = time.perf_counter()
        cancelled = False

        for frame in sampler:
            if should_cancel is not None and should_cancel():
                cancelled = True
                logger.info(f"Analysis cancelled at frame {frame.index}")
                break

            try:
                self._process_frame(state, frame, calibrator)
            except Exception as e:
                state.frames_failed += 1
                logger.warning(
                    f"Skipping frame {frame.index}: {type(e).__name__}: {e}",
                    exc_info=cfg.debug,
                )
            finally:
                state.frames_processed += 1
                state.last_frame_idx = frame.index
                state.last_game_time = frame.game_time
                frame = None

            self._housekeeping(state, info)

        result = self._build_result(state, info, sampler, cancelled, time.perf_counter() - started)

        if self.reporter:
            self.reporter.summary(result)
        return result

    def _process_frame(self, state: AnalysisState, frame: Frame, calibrator: RegionCalibrator) -> None:
        if state.regions is None:
            state.regions = calibrator.calibrate(frame.width, frame.height)

        counts = self.jersey.count(state.regions.court.crop(frame.image))
        state.possession.update(counts.players_a, counts.players_b)

        proximity = None
        if not state.ledger.cooldown_active:
            proximity = self.ball_detector.detect(frame.image, state.regions)

        self.state_machine.update(state, frame, proximity)

    def _housekeeping(self, state: AnalysisState, info: VideoInfo) -> None:
        processed = state.frames_processed

        if self.reporter and self.reporter.should_report(processed):
            ledger = state.ledger
            self.reporter.progress(
                info,
                state.last_frame_idx,
                state.last_game_time,
                ledger.team_a_score,
                ledger.team_b_score,
                ledger.total_baskets,
            )

        if processed % self.config.reporting.gc_interval == 0:
            cleanup_memory(log_step=f"frame {state.last_frame_idx}")

    def _build_result(
        self,
        state: AnalysisState,
        info: VideoInfo,
        sampler: FrameSampler,
        cancelled: bool,
        elapsed: float,
    ) -> GameResult:
        if cancelled:
            duration = state.last_game_time
        elif sampler.end_frame is not None:
            duration = sampler.game_time(sampler.end_frame)
        else:
            duration = info.duration or state.last_game_time

        ledger = state.ledger
        result = GameResult(
            video_info=info,
            team_a_score=ledger.team_a_score,
            team_b_score=ledger.team_b_score,
            total_baskets=ledger.total_baskets,
            duration=duration,
            events=list(state.events),
            rejected_events=ledger.rejected_count,
            frames_processed=state.frames_processed,
            frames_failed=state.frames_failed,
            processing_time=elapsed,
            team_a_possession=state.possession.team_a,
            team_b_possession=state.possession.team_b,
            cancelled=cancelled,
        )
        result.confidence_score = compute_confidence(
            result,
            self.config.scoring,
            ceiling_hit=ledger.rejections[Rejection.SCORE_CEILING] > 0,
        )

        logger.info(
            f"Finished: {result.team_a_score}-{result.team_b_score} "
            f"({result.total_baskets} baskets, {state.windows_opened} windows, "
            f"{state.windows_timed_out} timed out, {result.rejected_events} rejected, "
            f"{self.attributor.external_calls} external calls)"
        )
        return result
