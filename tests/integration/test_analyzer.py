"""End-to-end tests for the game analysis loop on synthetic videos."""

import io
from unittest.mock import Mock, patch

import pytest
from rich.console import Console

from hoopscore.analysis.analyzer import GameAnalyzer, compute_confidence
from hoopscore.core.config import HoopScoreConfig, ScoringConfig
from hoopscore.core.models import BasketLocation, GameResult, Team
from hoopscore.output.summary import SummaryReporter
from tests.synthetic import WHITE, FakeVideo, blank, draw_ball, draw_players

WIDTH, HEIGHT = 320, 180
# Centre of the top basket region at 320x180 (112, 9, 96, 45)
TOP_BASKET_CENTER = (160, 31)
TEAM_A_PLAYERS = [(50, 70), (130, 70), (210, 70)]

# Same scene at 640x360; top basket region is (224, 18, 192, 90)
HD_WIDTH, HD_HEIGHT = 640, 360
HD_TOP_BASKET_CENTER = (320, 63)
HD_TEAM_A_PLAYERS = [(100, 150), (220, 150), (340, 150)]


def game(
    ball_frames=(),
    players=True,
    size=(WIDTH, HEIGHT),
    ball_at=TOP_BASKET_CENTER,
    team_a=TEAM_A_PLAYERS,
):
    """Renderer for a fixed-camera game with the ball at the top basket on given frames."""
    ball_frames = set(ball_frames)

    def render(idx):
        image = blank(*size)
        if players:
            draw_players(image, team_a, color=WHITE)
        if idx in ball_frames:
            draw_ball(image, *ball_at)
        return image

    return render


@pytest.fixture
def config():
    """Analyze every frame at native resolution."""
    return HoopScoreConfig(video={"target_fps": 30.0, "downscale": False})


class TestGameAnalyzer:
    """Tests for GameAnalyzer.analyze_video."""

    def test_no_activity(self, config):
        video = FakeVideo(game(), frame_count=600)

        result = GameAnalyzer(config=config).analyze_video(video)

        assert (result.team_a_score, result.team_b_score) == (0, 0)
        assert result.events == []
        assert result.winner is None
        assert result.frames_processed == 600
        assert result.frames_failed == 0
        assert result.duration == pytest.approx(20.0)
        assert result.confidence_score == 100

    def test_single_basket(self, config):
        video = FakeVideo(game(ball_frames=[100]), frame_count=600)

        result = GameAnalyzer(config=config).analyze_video(video)

        assert (result.team_a_score, result.team_b_score) == (2, 0)
        assert result.total_baskets == 1
        assert result.winner is Team.TEAM_A
        event = result.events[0]
        assert event.frame_idx == 105
        assert event.basket_location is BasketLocation.TOP
        assert result.rejected_events == 0

    def test_frame_skip_keeps_true_indices(self):
        """At 10fps analysis of a 30fps video every third frame is read."""
        config = HoopScoreConfig(video={"target_fps": 10.0, "downscale": False})
        video = FakeVideo(game(), frame_count=90)

        result = GameAnalyzer(config=config).analyze_video(video)

        assert result.frames_processed == 30
        assert video.read_indices == list(range(0, 90, 3))

    def test_failing_frame_is_skipped(self, config):
        def classify(frame, regions):
            if frame.index == 104:
                raise ValueError("bad crop")
            return Team.TEAM_A

        classifier = Mock()
        classifier.classify.side_effect = classify
        video = FakeVideo(game(ball_frames=[100]), frame_count=600)

        result = GameAnalyzer(config=config, classifier=classifier).analyze_video(video)

        assert result.frames_failed == 1
        assert result.frames_processed == 600
        assert [e.frame_idx for e in result.events] == [106]
        assert result.team_a_score == 2

    def test_external_classifier_asked_once(self, config):
        external = Mock()
        external.classify.return_value = Team.TEAM_B
        video = FakeVideo(game(ball_frames=[100]), frame_count=600)

        result = GameAnalyzer(config=config, external_classifier=external).analyze_video(video)

        external.classify.assert_called_once()
        # Two jersey votes for A outweigh the single external vote for B
        assert result.team_a_score == 2

    def test_reused_analyzer_recalibrates(self, config):
        """A second video with another frame size gets its own regions."""
        analyzer = GameAnalyzer(config=config)
        analyzer.analyze_video(FakeVideo(game(), frame_count=60))

        hd_video = FakeVideo(
            game(
                ball_frames=[100],
                size=(HD_WIDTH, HD_HEIGHT),
                ball_at=HD_TOP_BASKET_CENTER,
                team_a=HD_TEAM_A_PLAYERS,
            ),
            frame_count=600,
            width=HD_WIDTH,
            height=HD_HEIGHT,
        )
        result = analyzer.analyze_video(hd_video)

        assert result.team_a_score == 2
        assert [e.frame_idx for e in result.events] == [105]

    def test_possession_from_jersey_counts(self, config):
        video = FakeVideo(game(), frame_count=600)

        result = GameAnalyzer(config=config).analyze_video(video)

        # Only Team A jerseys on court: 100 * (1 - 0.95 ** 600)
        assert result.team_a_possession == pytest.approx(100.0, abs=0.01)
        assert result.team_b_possession == 0.0

    def test_possession_starts_from_zero(self, config):
        video = FakeVideo(game(), frame_count=10)

        result = GameAnalyzer(config=config).analyze_video(video)

        assert result.team_a_possession == pytest.approx(100.0 * (1 - 0.95**10))

    def test_external_counters_are_per_run(self, config):
        external = Mock()
        external.classify.return_value = Team.TEAM_A
        analyzer = GameAnalyzer(config=config, external_classifier=external)

        for _ in range(2):
            analyzer.analyze_video(FakeVideo(game(ball_frames=[100]), frame_count=300))

            assert analyzer.attributor.external_calls == 1
        assert external.classify.call_count == 2

    def test_cancellation(self, config):
        polls = []
        video = FakeVideo(game(), frame_count=600)

        result = GameAnalyzer(config=config).analyze_video(
            video, should_cancel=lambda: polls.append(1) or len(polls) > 50
        )

        assert result.cancelled
        assert result.frames_processed == 50
        assert result.duration == pytest.approx(49 / 30)

    def test_limit_seconds(self, config):
        video = FakeVideo(game(), frame_count=600)

        result = GameAnalyzer(config=config).analyze_video(video, limit_seconds=5.0)

        assert result.frames_processed == 150
        assert result.duration == pytest.approx(5.0)

    def test_periodic_memory_cleanup(self):
        config = HoopScoreConfig(
            video={"target_fps": 30.0, "downscale": False},
            reporting={"gc_interval": 100},
        )
        video = FakeVideo(game(players=False), frame_count=900)

        with patch("hoopscore.analysis.analyzer.cleanup_memory") as cleanup:
            GameAnalyzer(config=config).analyze_video(video)

        assert cleanup.call_count == 9

    def test_reporter_output(self, config):
        buffer = io.StringIO()
        reporter = SummaryReporter(
            console=Console(file=buffer, width=120),
            progress_interval=100,
            show_memory=False,
        )
        video = FakeVideo(game(ball_frames=[100]), frame_count=300)

        GameAnalyzer(config=config, reporter=reporter).analyze_video(video)

        output = buffer.getvalue()
        assert output.count("Progress:") == 3
        assert "Score: A 2 - 0 B" in output
        assert "Final Score" in output
        assert "Team A wins!" in output
        assert "Key moments:" in output
        assert "Ball possession:  Team A 100% - Team B 0%" in output

    def test_missing_file(self, tmp_path, config):
        with pytest.raises(FileNotFoundError):
            GameAnalyzer(config=config).analyze(tmp_path / "missing.mp4")


class TestComputeConfidence:
    """Tests for the confidence heuristic."""

    def _result(self, **kwargs):
        return GameResult(video_info=Mock(), **kwargs)

    def test_clean_result(self):
        result = self._result(total_baskets=10, duration=600.0, frames_processed=1000)

        assert compute_confidence(result, ScoringConfig()) == 100

    def test_deductions(self):
        # 10 baskets in one minute is far above the expected pace
        result = self._result(total_baskets=10, duration=60.0, frames_processed=100, frames_failed=20)

        assert compute_confidence(result, ScoringConfig(), ceiling_hit=True) == 100 - 20 - 15 - 10
