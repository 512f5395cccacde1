"""
Ratings read service.

Query functions over the snapshot table for the API/UI layer. Every
lookup is scoped to a single season; dates default to the most recent
snapshot.
"""

from datetime import date
from typing import Optional, Union

from db.models.team_ratings import TeamRating
from schemas.ratings import (
    QuadrantRecord,
    RankingMetric,
    RatingSnapshot,
    quadrant_record_from_row,
)


def get_rating_snapshot(
    team_id: str,
    season: str,
    snapshot_date: Optional[date] = None,
) -> Optional[RatingSnapshot]:
    """
    Snapshot for a team.

    Args:
        team_id: Team identifier
        season: Season identifier
        snapshot_date: Snapshot date. Defaults to the team's latest snapshot.

    Returns:
        RatingSnapshot, or None if the team has no snapshot for that date.
    """
    row = TeamRating.get_for_team(team_id, season, snapshot_date)
    if row is None:
        return None
    return RatingSnapshot.from_row(row)


def get_rankings(
    league: str,
    season: str,
    metric: Union[RankingMetric, str],
    snapshot_date: Optional[date] = None,
) -> list[RatingSnapshot]:
    """
    Ranked snapshots for a league/season.

    Teams without a rank for the metric (below the minimum game count) are
    left out.

    Args:
        league: League identifier
        season: Season identifier
        metric: One of rpi, pcr, pr, power_index, adj_net
        snapshot_date: Snapshot date. Defaults to the league's latest snapshot.

    Returns:
        Snapshots ordered best rank first, empty if nothing was computed.

    Raises:
        ValueError: If metric is not a known RankingMetric
    """
    metric = RankingMetric(metric)
    if snapshot_date is None:
        snapshot_date = TeamRating.get_latest_date(season, league=league)
        if snapshot_date is None:
            return []

    rows = TeamRating.get_ranked(league, season, metric.rank_field, snapshot_date)
    return [RatingSnapshot.from_row(row) for row in rows]


def get_quadrant_record(
    team_id: str,
    season: str,
    snapshot_date: Optional[date] = None,
) -> Optional[QuadrantRecord]:
    """
    Quadrant wins/losses for a team from its latest (or given) snapshot.

    Returns:
        QuadrantRecord, or None if the team has no snapshot.
    """
    row = TeamRating.get_for_team(team_id, season, snapshot_date)
    if row is None:
        return None
    return quadrant_record_from_row(row)
