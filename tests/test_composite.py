"""Tests for composite scores and rankings."""

import pytest

from pipelines.config import RatingOptions
from pipelines.season import Team
from pipelines.transformers.composite import (
    compute_composites,
    min_max_normalize,
    pcr_order,
    projected_order,
    quad_win_points,
    quality_win_index,
)
from pipelines.transformers.efficiency import solve_adjusted_ratings
from pipelines.transformers.rpi import (
    QuadrantRecord,
    compute_quadrants,
    compute_rpi,
    rank_by_rpi,
)

from tests.conftest import dataset, game, teams


def run_composites(ds, champions=None, **option_overrides):
    options = RatingOptions(**option_overrides)
    rpi = compute_rpi(ds, options.rpi_weights)
    quadrants = compute_quadrants(ds, rank_by_rpi(ds, rpi))
    efficiency = solve_adjusted_ratings(ds, options)
    return compute_composites(ds, rpi, quadrants, efficiency, champions or {}, options)


class TestQuadrantScores:
    @pytest.fixture
    def record(self):
        record = QuadrantRecord()
        for quadrant, won in [(1, True), (1, False), (2, True), (3, True), (4, True), (4, False)]:
            record.add(quadrant, won)
        return record

    def test_qwp(self, record):
        assert quad_win_points(record) == pytest.approx(4 + 2 + 1 + 0.5)

    def test_qwi(self, record):
        assert quality_win_index(record) == pytest.approx(1.0 - 0.25 + 0.6 + 0.3 + 0.1 - 1.0)

    def test_qwp_custom_weights(self, record):
        weights = {"q1": 1.0, "q2": 1.0, "q3": 1.0, "q4": 1.0}
        assert quad_win_points(record, weights) == 4


class TestPCR:
    def test_overall_win_pct_outranks_rpi(self):
        # B's only loss is to an outsider, which RPI ignores but PCR counts
        team_list = teams("A", "B", "C") + teams("X", members=False)
        games = [
            game("g1", "A", "C", 80, 70, day=0),
            game("g2", "B", "C", 80, 70, day=1),
            game("g3", "X", "A", 60, 70, day=2, home_in_league=False),
            game("g4", "X", "B", 70, 60, day=3, home_in_league=False),
        ]
        ds = dataset(team_list, games)
        rpi = compute_rpi(ds)
        order = pcr_order(ds, ["A", "B", "C"], rpi, {"A": 0.0, "B": 0.0, "C": 0.0})
        assert order == ["A", "B", "C"]

    def test_qwp_then_name_break_ties(self):
        team_list = [Team("t1", "Zulu"), Team("t2", "Alpha"), Team("t3", "Mike")]
        ds = dataset(team_list, [])
        rpi = compute_rpi(ds)
        order = pcr_order(ds, ["t1", "t2", "t3"], rpi, {"t1": 0.0, "t2": 0.0, "t3": 1.0})
        assert order == ["t3", "t2", "t1"]


class TestProjectedRank:
    @pytest.fixture
    def pcr(self):
        return [f"t{i:02d}" for i in range(1, 71)]

    def test_champion_promoted_into_field(self, pcr):
        projected = projected_order(pcr, {"East": "t70"}, field_size=64)

        assert projected.index("t70") == 63
        assert projected.index("t64") == 64
        others = [t for t in projected if t not in ("t70", "t64")]
        assert others == [t for t in pcr if t not in ("t70", "t64")]

    def test_champion_inside_field_unchanged(self, pcr):
        assert projected_order(pcr, {"East": "t10"}, field_size=64) == pcr

    def test_undecided_or_ineligible_champion_ignored(self, pcr):
        assert projected_order(pcr, {"East": None, "West": "t99"}, field_size=64) == pcr

    def test_multiple_champions_keep_field_size(self, pcr):
        projected = projected_order(pcr, {"East": "t70", "West": "t66"}, field_size=64)

        field = projected[:64]
        assert "t70" in field and "t66" in field
        # West is processed second: t66 takes t63's slot, after t70 already took t64's
        assert projected.index("t70") == 63
        assert projected.index("t66") == 62
        assert projected[64:66] == ["t63", "t64"]
        assert len(projected) == 70

    def test_field_larger_than_order(self):
        order = ["a", "b", "c"]
        assert projected_order(order, {"East": "c"}, field_size=64) == order


class TestPowerIndex:
    def test_constant_column_normalizes_to_fifty(self):
        assert min_max_normalize({"a": 3.0, "b": 3.0}) == {"a": 50.0, "b": 50.0}

    def test_min_max_range(self):
        normalized = min_max_normalize({"a": 10.0, "b": 20.0, "c": 15.0})
        assert normalized == {"a": 0.0, "b": 100.0, "c": 50.0}

    def test_round_robin_power_index(self, round_robin):
        results = run_composites(round_robin)

        assert results["A"].power_index_rank == 1
        assert results["D"].power_index_rank == 4
        # A is best in every component except SOS, where it is lowest; D the reverse
        assert results["A"].power_index == pytest.approx(85.0)
        assert results["D"].power_index == pytest.approx(15.0)


class TestCompositeResults:
    def test_round_robin_ranks(self, round_robin):
        results = run_composites(round_robin)

        assert [results[t].pcr for t in "ABCD"] == [1, 2, 3, 4]
        assert [results[t].projected_rank for t in "ABCD"] == [1, 2, 3, 4]
        assert results["A"].adj_net_rank == 1
        assert results["A"].qwp == pytest.approx(12.0)
        assert results["D"].qwi == pytest.approx(-0.75)

    def test_min_games_filters_ranks(self, round_robin):
        results = run_composites(round_robin, min_games=4)

        for result in results.values():
            assert result.pcr is None
            assert result.projected_rank is None
            assert result.power_index is None
            assert result.adj_net_rank is None
        assert results["A"].qwp == pytest.approx(12.0)

    def test_team_without_games_unranked_by_default(self):
        ds = dataset(teams("A", "B", "C"), [game("g1", "A", "B", 80, 70)])
        results = run_composites(ds)
        assert results["C"].pcr is None
        assert results["A"].pcr == 1

    def test_champion_flagged_as_automatic_qualifier(self, round_robin):
        results = run_composites(round_robin, champions={"North": "C"}, field_size=2)

        assert results["C"].is_automatic_qualifier
        assert results["C"].projected_rank == 2
        assert results["B"].projected_rank == 3
        assert results["C"].pcr == 3
