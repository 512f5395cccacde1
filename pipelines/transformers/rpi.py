"""
RPI Transformer

Rating Percentage Index and quadrant records over in-league games only.
Games against out-of-league opponents stay in the schedule but never
enter WP, OWP, OOWP or quadrant tallies.

    RPI = 0.30 x WP + 0.50 x OWP + 0.20 x OOWP

OWP is computed per meeting: for every in-league game a team played, the
opponent's win percentage with every game between the two teams removed.
An opponent left with no games after that removal contributes its
unadjusted win percentage instead.
"""

from dataclasses import dataclass, field
from typing import Mapping

from pipelines.config import DEFAULT_RPI_WEIGHTS
from pipelines.season import AWAY, HOME, NEUTRAL, SeasonDataset, TeamGame

# Highest opponent RPI rank still inside Q1, Q2, Q3 for each location; Q4 beyond
QUADRANT_THRESHOLDS: dict[str, tuple[int, int, int]] = {
    HOME: (45, 90, 135),
    NEUTRAL: (55, 105, 150),
    AWAY: (65, 120, 165),
}


@dataclass(frozen=True)
class RPIResult:
    """RPI components for one team."""

    wins: int
    losses: int
    wp: float
    owp: float
    oowp: float
    rpi: float

    @property
    def games(self) -> int:
        return self.wins + self.losses


@dataclass
class QuadrantRecord:
    """Wins and losses by quadrant."""

    wins: dict[int, int] = field(default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0})
    losses: dict[int, int] = field(default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0})

    def add(self, quadrant: int, won: bool) -> None:
        if won:
            self.wins[quadrant] += 1
        else:
            self.losses[quadrant] += 1

    def as_dict(self) -> dict[str, int]:
        """Flat mapping like {"q1_wins": 2, "q1_losses": 0, ...}."""
        out = {}
        for q in (1, 2, 3, 4):
            out[f"q{q}_wins"] = self.wins[q]
            out[f"q{q}_losses"] = self.losses[q]
        return out


def _record(edges: list[TeamGame]) -> tuple[int, int]:
    wins = sum(1 for e in edges if e.won)
    return wins, len(edges) - wins


def win_pct(wins: int, losses: int) -> float:
    """Wins over decisions; 0.0 for a team with no games."""
    games = wins + losses
    if games == 0:
        return 0.0
    return wins / games


def rpi_team_ids(dataset: SeasonDataset) -> list[str]:
    """League members plus any team appearing in an in-league game, in id order."""
    ids = set(dataset.member_ids)
    for team_id in dataset.teams:
        if dataset.edges(team_id, league_only=True):
            ids.add(team_id)
    return sorted(ids)


def win_pct_excluding(dataset: SeasonDataset, team_id: str, excluded_opponent: str) -> float:
    """
    A team's in-league win percentage with every game against one opponent removed.

    Falls back to the unadjusted win percentage when nothing is left.
    """
    edges = dataset.edges(team_id, league_only=True)
    remaining = [e for e in edges if e.opponent_id != excluded_opponent]
    if not remaining:
        return win_pct(*_record(edges))
    return win_pct(*_record(remaining))


def compute_rpi(
    dataset: SeasonDataset,
    weights: Mapping[str, float] = DEFAULT_RPI_WEIGHTS,
) -> dict[str, RPIResult]:
    """
    WP, OWP, OOWP and RPI for every team in the RPI universe.

    Averages over opponents are weighted by the number of meetings (one term
    per game). A team with no in-league games gets zeros throughout.

    Args:
        dataset: Season dataset for one scope
        weights: {"wp", "owp", "oowp"} weights

    Returns:
        team_id -> RPIResult
    """
    team_ids = rpi_team_ids(dataset)

    records = {tid: _record(dataset.edges(tid, league_only=True)) for tid in team_ids}
    wp = {tid: win_pct(*records[tid]) for tid in team_ids}

    owp: dict[str, float] = {}
    for tid in team_ids:
        edges = dataset.edges(tid, league_only=True)
        if not edges:
            owp[tid] = 0.0
            continue
        owp[tid] = sum(
            win_pct_excluding(dataset, e.opponent_id, tid) for e in edges
        ) / len(edges)

    results: dict[str, RPIResult] = {}
    for tid in team_ids:
        edges = dataset.edges(tid, league_only=True)
        oowp = sum(owp[e.opponent_id] for e in edges) / len(edges) if edges else 0.0
        wins, losses = records[tid]
        rpi = (
            weights["wp"] * wp[tid]
            + weights["owp"] * owp[tid]
            + weights["oowp"] * oowp
        )
        results[tid] = RPIResult(
            wins=wins,
            losses=losses,
            wp=wp[tid],
            owp=owp[tid],
            oowp=oowp,
            rpi=rpi,
        )
    return results


def rank_by_rpi(dataset: SeasonDataset, results: Mapping[str, RPIResult]) -> dict[str, int]:
    """
    1-based RPI rank: RPI desc, then WP desc, then team name, then team_id.
    """
    ordered = sorted(
        results,
        key=lambda tid: (
            -results[tid].rpi,
            -results[tid].wp,
            dataset.teams[tid].name,
            tid,
        ),
    )
    return {tid: rank for rank, tid in enumerate(ordered, start=1)}


def quadrant_for(opponent_rank: int, location: str) -> int:
    """
    Quadrant (1-4) of a game from the opponent's RPI rank and the game location.

    Thresholds are inclusive: an away game against the 65th-ranked team is Q1,
    against the 66th is Q2.
    """
    q1, q2, q3 = QUADRANT_THRESHOLDS[location]
    if opponent_rank <= q1:
        return 1
    if opponent_rank <= q2:
        return 2
    if opponent_rank <= q3:
        return 3
    return 4


def compute_quadrants(
    dataset: SeasonDataset,
    ranks: Mapping[str, int],
) -> dict[str, QuadrantRecord]:
    """
    Quadrant W/L tallies rebuilt from scratch for every ranked team.

    Every in-league game adds exactly one (quadrant, result) to each side.
    """
    records = {tid: QuadrantRecord() for tid in ranks}
    for tid in ranks:
        for edge in dataset.edges(tid, league_only=True):
            quadrant = quadrant_for(ranks[edge.opponent_id], edge.location)
            records[tid].add(quadrant, edge.won)
    return records
