"""Tests for the adjusted efficiency solver."""

import pytest

from core.errors import RunCancelledError
from pipelines.config import RatingOptions
from pipelines.transformers.efficiency import solve_adjusted_ratings

from tests.conftest import ROUND_ROBIN_GAMES, dataset, game, teams


@pytest.fixture
def options():
    return RatingOptions()


class TestSeeding:
    def test_league_average_is_possession_weighted(self, round_robin, options):
        result = solve_adjusted_ratings(round_robin, options)
        total_points = sum(hs + aws for _, _, _, hs, aws in ROUND_ROBIN_GAMES)
        assert result.league_avg_ortg == pytest.approx(total_points / 12)
        assert result.league_avg_drtg == pytest.approx(result.league_avg_ortg)

    def test_raw_ratings(self, round_robin, options):
        ratings = solve_adjusted_ratings(round_robin, options).ratings
        assert ratings["A"].ortg == pytest.approx(90.0)
        assert ratings["A"].drtg == pytest.approx(205 / 3)
        assert ratings["A"].rated_games == 3

    def test_team_without_games_gets_league_average(self, options):
        ds = dataset(teams("A", "B", "C"), [game("g1", "A", "B", 80, 70)])
        result = solve_adjusted_ratings(ds, options)
        idle = result.ratings["C"]

        assert idle.adj_ortg == result.league_avg_ortg
        assert idle.adj_drtg == result.league_avg_drtg
        assert idle.adj_net == pytest.approx(0.0)
        assert idle.sos == 0.0
        assert idle.osos == result.league_avg_ortg
        assert idle.rated_games == 0

    def test_games_without_box_scores_are_not_rated(self, options):
        games = [
            game("g1", "A", "B", 80, 70, day=0),
            game("g2", "B", "A", 90, 60, day=1, with_stats=False),
        ]
        ratings = solve_adjusted_ratings(dataset(teams("A", "B"), games), options).ratings
        assert ratings["A"].rated_games == 1
        assert ratings["A"].ortg == pytest.approx(80.0)


class TestConvergence:
    def test_evenly_matched_pair_keeps_raw_values(self, options):
        # Each team wins its home game by the same score: identical raw ratings
        games = [
            game("g1", "A", "B", 80, 70, day=0),
            game("g2", "B", "A", 80, 70, day=1),
        ]
        result = solve_adjusted_ratings(dataset(teams("A", "B"), games), options)

        assert result.converged
        for rating in result.ratings.values():
            assert rating.adj_ortg == pytest.approx(rating.ortg)
            assert rating.adj_drtg == pytest.approx(rating.drtg)
            assert rating.sos == pytest.approx(0.0)

    @pytest.fixture
    def lopsided_pair(self):
        # A beats B 90-70 home and away: raw A 90/70, league average 80
        games = [
            game("g1", "A", "B", 90, 70, day=0),
            game("g2", "B", "A", 70, 90, day=1),
        ]
        return dataset(teams("A", "B"), games)

    def test_closed_pair_adjusted_values_mirror_each_other(self, lopsided_pair, options):
        result = solve_adjusted_ratings(lopsided_pair, options)
        a, b = result.ratings["A"], result.ratings["B"]

        assert result.converged
        assert (a.ortg, a.drtg) == (pytest.approx(90.0), pytest.approx(70.0))
        assert a.adj_ortg == pytest.approx(b.adj_drtg)
        assert a.adj_drtg == pytest.approx(b.adj_ortg)
        assert a.adj_net == pytest.approx(-b.adj_net)
        assert a.adj_net > 0
        assert a.sos == pytest.approx(b.adj_net)

    def test_closed_pair_converges_to_geometric_mean_with_league_average(self, lopsided_pair):
        # Fixed point of adj_o(A) = ortg(A) * avg / adj_d(B) with adj_o(A) == adj_d(B)
        tight = RatingOptions(threshold=1e-10, max_iterations=200)
        result = solve_adjusted_ratings(lopsided_pair, tight)
        a = result.ratings["A"]

        assert result.converged
        assert result.league_avg_ortg == pytest.approx(80.0)
        assert a.adj_ortg == pytest.approx((90.0 * 80.0) ** 0.5)
        assert a.adj_drtg == pytest.approx((70.0 * 80.0) ** 0.5)

    def test_closed_pair_first_damped_step(self, lopsided_pair, options):
        result = solve_adjusted_ratings(lopsided_pair, options)
        a = result.ratings["A"]

        assert result.iterations == 1
        assert a.adj_ortg == pytest.approx(85.0)
        assert a.adj_drtg == pytest.approx(75.0)

    def test_converges_within_cap(self, round_robin, options):
        result = solve_adjusted_ratings(round_robin, options)
        assert result.converged
        assert 0 < result.iterations < options.max_iterations
        assert result.max_delta < options.threshold

    def test_idempotent_from_converged_seed(self, round_robin, options):
        first = solve_adjusted_ratings(round_robin, options)
        second = solve_adjusted_ratings(round_robin, options, seed=first.seed())

        assert second.converged
        assert second.iterations == 0
        assert second.ratings == first.ratings

    def test_deterministic(self, round_robin, options):
        reloaded = dataset(
            list(reversed(list(round_robin.teams.values()))),
            list(reversed(round_robin.games)),
        )
        assert solve_adjusted_ratings(reloaded, options) == solve_adjusted_ratings(round_robin, options)

    def test_iteration_cap_flags_not_converged(self, round_robin):
        capped = RatingOptions(max_iterations=1, threshold=1e-12)
        result = solve_adjusted_ratings(round_robin, capped)

        assert not result.converged
        assert result.iterations == 1
        assert set(result.ratings) == {"A", "B", "C", "D"}

    def test_adj_net_signs(self, round_robin, options):
        ratings = solve_adjusted_ratings(round_robin, options).ratings
        assert ratings["A"].adj_net > 0
        assert ratings["D"].adj_net < 0
        assert ratings["A"].adj_net == pytest.approx(ratings["A"].adj_ortg - ratings["A"].adj_drtg)


class TestScheduleStrength:
    def test_sos_is_mean_opponent_adj_net(self, round_robin, options):
        ratings = solve_adjusted_ratings(round_robin, options).ratings
        expected = (ratings["B"].adj_net + ratings["C"].adj_net + ratings["D"].adj_net) / 3
        assert ratings["A"].sos == pytest.approx(expected)
        assert ratings["A"].nsos == ratings["A"].sos
        assert ratings["A"].osos == pytest.approx(
            (ratings["B"].adj_ortg + ratings["C"].adj_ortg + ratings["D"].adj_ortg) / 3
        )
        assert ratings["A"].dsos == pytest.approx(
            (ratings["B"].adj_drtg + ratings["C"].adj_drtg + ratings["D"].adj_drtg) / 3
        )


class TestGameScope:
    @pytest.fixture
    def with_outsider(self):
        team_list = teams("A", "B") + teams("X", members=False)
        games = [
            game("g1", "A", "B", 80, 70, day=0),
            game("g2", "A", "X", 120, 40, day=1, away_in_league=False),
        ]
        return dataset(team_list, games)

    def test_non_league_games_rated_by_default(self, with_outsider, options):
        result = solve_adjusted_ratings(with_outsider, options)
        assert "X" in result.ratings
        assert result.ratings["A"].rated_games == 2
        assert result.ratings["A"].ortg == pytest.approx(100.0)

    def test_non_league_games_excluded_on_request(self, with_outsider):
        result = solve_adjusted_ratings(with_outsider, RatingOptions(include_non_league=False))
        assert "X" not in result.ratings
        assert result.ratings["A"].rated_games == 1
        assert result.ratings["A"].ortg == pytest.approx(80.0)


class TestCancellation:
    def test_cancel_before_first_iteration(self, round_robin, options):
        with pytest.raises(RunCancelledError) as exc_info:
            solve_adjusted_ratings(round_robin, options, should_cancel=lambda: True)
        assert exc_info.value.iteration == 0

    def test_cancel_between_iterations(self, round_robin):
        calls = []

        def cancel_on_third_poll():
            calls.append(1)
            return len(calls) >= 3

        with pytest.raises(RunCancelledError) as exc_info:
            solve_adjusted_ratings(
                round_robin,
                RatingOptions(threshold=1e-12),
                should_cancel=cancel_on_third_poll,
            )
        assert exc_info.value.iteration == 2
