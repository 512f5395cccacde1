"""Tests for the snapshot table and its writer."""

from datetime import date

import pytest

from core.errors import SnapshotWriteError
from db.models.team_ratings import INSERT_BATCH_SIZE, TeamRating

DAY_ONE = date(2026, 2, 1)
DAY_TWO = date(2026, 2, 2)


def rows(*team_ids, **values):
    return [
        {"team_id": tid, "team_name": f"Team {tid}", "rpi": 0.5, "rpi_rank": i, **values}
        for i, tid in enumerate(team_ids, start=1)
    ]


def stored(day=DAY_ONE):
    return {
        r.team_id: r
        for r in TeamRating.select().where(TeamRating.date_calculated == day)
    }


class TestWriteSnapshot:
    def test_writes_one_row_per_team(self, database):
        written = TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A", "B"))

        assert written == 2
        snapshot = stored()
        assert set(snapshot) == {"A", "B"}
        assert snapshot["A"].league == "mens"
        assert snapshot["A"].season == "2025-26"

    def test_same_day_rerun_overwrites(self, database):
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A", "B"))
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A", "B", rpi=0.9))

        assert TeamRating.select().count() == 2
        assert all(r.rpi == 0.9 for r in stored().values())

    def test_same_day_rerun_drops_teams_no_longer_present(self, database):
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A", "B"))
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A"))

        assert set(stored()) == {"A"}

    def test_other_dates_and_leagues_retained(self, database):
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A", "B"))
        TeamRating.write_snapshot("womens", "2025-26", DAY_ONE, rows("W1"))
        TeamRating.write_snapshot("mens", "2025-26", DAY_TWO, rows("A"))

        assert set(stored(DAY_ONE)) == {"A", "B", "W1"}
        assert set(stored(DAY_TWO)) == {"A"}

    def test_many_rows_span_batches(self, database):
        team_ids = [f"t{i:03d}" for i in range(INSERT_BATCH_SIZE * 3 + 2)]
        assert TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows(*team_ids)) == len(team_ids)
        assert TeamRating.select().count() == len(team_ids)

    def test_failed_write_rolls_back(self, database):
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A", "B"))

        team_ids = [f"t{i:03d}" for i in range(INSERT_BATCH_SIZE + 5)]
        bad = rows(*team_ids, rpi=0.9)
        bad[-1]["team_name"] = None  # NOT NULL violation in the second batch

        with pytest.raises(SnapshotWriteError):
            TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, bad)

        snapshot = stored()
        assert set(snapshot) == {"A", "B"}
        assert all(r.rpi == 0.5 for r in snapshot.values())

    def test_cross_season_row_rejected(self, database):
        bad = rows("A", season="2024-25")
        with pytest.raises(SnapshotWriteError):
            TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, bad)
        assert TeamRating.select().count() == 0


class TestQueries:
    def test_latest_date(self, database):
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A"))
        TeamRating.write_snapshot("mens", "2025-26", DAY_TWO, rows("A"))

        assert TeamRating.get_latest_date("2025-26", league="mens") == DAY_TWO
        assert TeamRating.get_latest_date("2025-26", league="womens") is None

    def test_get_for_team_defaults_to_latest(self, database):
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, rows("A", rpi=0.1))
        TeamRating.write_snapshot("mens", "2025-26", DAY_TWO, rows("A", rpi=0.2))

        assert TeamRating.get_for_team("A", "2025-26").rpi == 0.2
        assert TeamRating.get_for_team("A", "2025-26", DAY_ONE).rpi == 0.1
        assert TeamRating.get_for_team("A", "2024-25") is None

    def test_get_ranked_skips_unranked(self, database):
        data = rows("A", "B", "C")
        data[0]["pcr"], data[1]["pcr"], data[2]["pcr"] = 2, 1, None
        TeamRating.write_snapshot("mens", "2025-26", DAY_ONE, data)

        ranked = TeamRating.get_ranked("mens", "2025-26", "pcr", DAY_ONE)
        assert [r.team_id for r in ranked] == ["B", "A"]

    def test_get_ranked_unknown_field(self, database):
        with pytest.raises(ValueError):
            TeamRating.get_ranked("mens", "2025-26", "rpi", DAY_ONE)
