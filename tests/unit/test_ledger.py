"""Tests for the score ledger guards."""

import math
import random

import pytest

from hoopscore.analysis.ledger import Rejection, ScoreLedger
from hoopscore.core.config import ScoringConfig
from hoopscore.core.models import Team


class TestScoreLedger:
    """Tests for ScoreLedger."""

    @pytest.fixture
    def ledger(self):
        return ScoreLedger(ScoringConfig())

    @pytest.fixture
    def no_cooldown(self):
        """Ledger whose only timing guard is the wall-clock interval."""
        return ScoreLedger(ScoringConfig(cooldown_frames=0))

    def test_initial_state(self, ledger):
        assert ledger.total_score == 0
        assert ledger.total_baskets == 0
        assert ledger.last_score_timestamp is None
        assert ledger.seconds_since_last_score(0.0) == math.inf
        assert ledger.can_score_at(0.0)
        assert not ledger.cooldown_active

    def test_confirm_credits_two_points(self, ledger):
        assert ledger.confirm_basket(Team.TEAM_A, game_time=12.0, now=100.0)

        assert ledger.team_a_score == 2
        assert ledger.team_b_score == 0
        assert ledger.total_baskets == 1
        assert ledger.last_score_timestamp == 100.0
        assert ledger.cooldown_frames_remaining == 60
        assert ledger.score_for(Team.TEAM_A) == 2
        assert ledger.score_for(Team.UNKNOWN) == 0

    def test_unknown_team_rejected(self, ledger):
        assert not ledger.confirm_basket(Team.UNKNOWN, game_time=12.0, now=100.0)

        assert ledger.total_score == 0
        assert ledger.rejections[Rejection.UNKNOWN_TEAM] == 1

    def test_cooldown_blocks_and_expires(self, ledger):
        ledger.confirm_basket(Team.TEAM_A, game_time=10.0, now=0.0)

        assert ledger.check(Team.TEAM_B, game_time=20.0, now=1000.0) is Rejection.TOO_SOON

        for _ in range(60):
            ledger.tick_cooldown()
        assert not ledger.cooldown_active
        ledger.tick_cooldown()
        assert ledger.cooldown_frames_remaining == 0

        assert ledger.confirm_basket(Team.TEAM_B, game_time=20.0, now=1000.0)
        assert (ledger.team_a_score, ledger.team_b_score) == (2, 2)

    def test_minimum_wall_clock_interval(self, no_cooldown):
        assert no_cooldown.confirm_basket(Team.TEAM_A, game_time=10.0, now=100.0)

        assert not no_cooldown.confirm_basket(Team.TEAM_B, game_time=30.0, now=104.9)
        assert no_cooldown.rejections[Rejection.TOO_SOON] == 1

        assert no_cooldown.confirm_basket(Team.TEAM_B, game_time=30.0, now=105.0)
        assert no_cooldown.total_baskets == 2

    def test_pace_guard_in_first_minute(self, no_cooldown):
        """At 2 baskets/min expected, at most 4 fit in the first minute."""
        accepted = [
            no_cooldown.confirm_basket(Team.TEAM_A, game_time=30.0, now=10.0 * i)
            for i in range(20)
        ]

        assert accepted.count(True) == 4
        assert accepted[:4] == [True] * 4
        assert no_cooldown.rejections[Rejection.PACE] == 16

    def test_pace_scales_with_game_time(self, no_cooldown):
        # Ten minutes in, up to 40 baskets are plausible
        assert no_cooldown.projected_pace(600.0) == pytest.approx(0.1)
        assert no_cooldown.check(Team.TEAM_A, game_time=600.0, now=0.0) is None

    def test_score_ceiling(self):
        ledger = ScoreLedger(
            ScoringConfig(cooldown_frames=0, max_total_score=6, expected_baskets_per_minute=100)
        )

        results = [ledger.confirm_basket(Team.TEAM_B, game_time=5.0, now=10.0 * i) for i in range(5)]

        assert results == [True, True, True, False, False]
        assert ledger.total_score == 6
        assert ledger.rejections[Rejection.SCORE_CEILING] == 2
        assert ledger.rejected_count == 2

    def test_guard_order(self, ledger):
        """Unknown team is reported before timing guards."""
        ledger.confirm_basket(Team.TEAM_A, game_time=10.0, now=0.0)

        assert ledger.check(Team.UNKNOWN, game_time=10.0, now=0.0) is Rejection.UNKNOWN_TEAM

    def test_invariants_under_random_stream(self):
        """Whatever is thrown at it, the ledger keeps its guarantees."""
        config = ScoringConfig(cooldown_frames=3, max_total_score=20)
        ledger = ScoreLedger(config)
        rng = random.Random(1234)

        now = 0.0
        game_time = 0.0
        credited_at: list[float] = []
        for _ in range(2000):
            now += rng.uniform(0.0, 4.0)
            game_time += rng.uniform(0.0, 2.0)
            ledger.tick_cooldown()
            before = ledger.total_score
            team = rng.choice([Team.TEAM_A, Team.TEAM_B, Team.UNKNOWN])
            if ledger.confirm_basket(team, game_time, now):
                assert team is not Team.UNKNOWN
                assert ledger.total_score - before == config.points_per_basket
                credited_at.append(now)
            else:
                assert ledger.total_score == before

            assert ledger.total_score <= config.max_total_score
            assert ledger.total_score == ledger.total_baskets * config.points_per_basket

        assert credited_at
        gaps = [b - a for a, b in zip(credited_at, credited_at[1:])]
        assert all(gap >= config.min_time_between_scores for gap in gaps)
