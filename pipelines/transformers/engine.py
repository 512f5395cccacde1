"""
Season Ratings Engine

Runs every transformer for one scope in dependency order:

    dataset -> four factors, RPI + quadrants -> adjusted efficiency -> composites

and assembles one flat row per league member, ready for the snapshot table.
"""

from dataclasses import asdict, dataclass
from typing import Callable, Mapping, Optional

from core.logging import get_logger
from pipelines.config import RatingOptions
from pipelines.season import SeasonDataset, SeasonScope
from pipelines.transformers.composite import compute_composites
from pipelines.transformers.efficiency import solve_adjusted_ratings
from pipelines.transformers.possessions import season_four_factors
from pipelines.transformers.rpi import compute_quadrants, compute_rpi, rank_by_rpi, win_pct

log = get_logger("ratings.engine")


@dataclass(frozen=True)
class TeamRatingRow:
    """Every computed metric for one team, named after the snapshot columns."""

    team_id: str
    team_name: str
    conference: Optional[str]

    games_played: int
    wins: int
    losses: int
    win_pct: float
    league_games: int
    league_wins: int
    league_losses: int

    wp: float
    owp: float
    oowp: float
    rpi: float
    rpi_rank: int
    q1_wins: int
    q1_losses: int
    q2_wins: int
    q2_losses: int
    q3_wins: int
    q3_losses: int
    q4_wins: int
    q4_losses: int

    ortg: float
    drtg: float
    net_rating: float
    pace: Optional[float]
    efg_pct: Optional[float]
    tov_pct: Optional[float]
    oreb_pct: Optional[float]
    ft_rate: Optional[float]
    opp_efg_pct: Optional[float]
    opp_tov_pct: Optional[float]
    opp_oreb_pct: Optional[float]
    opp_ft_rate: Optional[float]

    adj_ortg: float
    adj_drtg: float
    adj_net: float
    adj_net_rank: Optional[int]
    sos: float
    osos: float
    dsos: float
    nsos: float
    converged: bool
    solver_iterations: int

    qwp: float
    qwi: float
    pcr: Optional[int]
    projected_rank: Optional[int]
    is_automatic_qualifier: bool
    power_index: Optional[float]
    power_index_rank: Optional[int]


@dataclass(frozen=True)
class SeasonRatings:
    """Output of one engine run."""

    scope: SeasonScope
    rows: dict[str, TeamRatingRow]
    converged: bool
    iterations: int
    league_avg_ortg: float
    league_avg_drtg: float

    def to_snapshot_rows(self) -> list[dict]:
        """Rows as column dicts in team_id order, scoped to this league/season."""
        return [
            {**asdict(row), "league": self.scope.league, "season": self.scope.season}
            for _, row in sorted(self.rows.items())
        ]


def compute_season_ratings(
    dataset: SeasonDataset,
    champions: Mapping[str, Optional[str]],
    options: RatingOptions,
    should_cancel: Optional[Callable[[], bool]] = None,
    seed: Optional[Mapping[str, tuple[float, float]]] = None,
) -> SeasonRatings:
    """
    Compute every metric for the league members of a dataset.

    Args:
        dataset: Season dataset for one scope
        champions: conference -> champion team_id (None when undecided)
        options: Rating options
        should_cancel: Polled between solver iterations
        seed: Optional solver warm start

    Returns:
        SeasonRatings with one row per league member

    Raises:
        RunCancelledError: If should_cancel() fires during the solve
    """
    scope = dataset.scope

    rpi = compute_rpi(dataset, options.rpi_weights)
    rpi_ranks = rank_by_rpi(dataset, rpi)
    quadrants = compute_quadrants(dataset, rpi_ranks)
    log.info("rpi_computed", league=scope.league, season=scope.season, teams=len(rpi))

    efficiency = solve_adjusted_ratings(dataset, options, seed=seed, should_cancel=should_cancel)
    composites = compute_composites(dataset, rpi, quadrants, efficiency, champions, options)

    rows: dict[str, TeamRatingRow] = {}
    for tid in dataset.member_ids:
        team = dataset.teams[tid]
        edges = dataset.edges(tid)
        wins = sum(1 for e in edges if e.won)
        factors = season_four_factors(edges)
        team_rpi = rpi[tid]
        adjusted = efficiency.ratings[tid]
        composite = composites[tid]

        rows[tid] = TeamRatingRow(
            team_id=tid,
            team_name=team.name,
            conference=team.conference,
            games_played=len(edges),
            wins=wins,
            losses=len(edges) - wins,
            win_pct=win_pct(wins, len(edges) - wins),
            league_games=team_rpi.games,
            league_wins=team_rpi.wins,
            league_losses=team_rpi.losses,
            wp=team_rpi.wp,
            owp=team_rpi.owp,
            oowp=team_rpi.oowp,
            rpi=team_rpi.rpi,
            rpi_rank=rpi_ranks[tid],
            **quadrants[tid].as_dict(),
            ortg=adjusted.ortg,
            drtg=adjusted.drtg,
            net_rating=adjusted.net_rating,
            pace=factors.pace,
            efg_pct=factors.efg_pct,
            tov_pct=factors.tov_pct,
            oreb_pct=factors.oreb_pct,
            ft_rate=factors.ft_rate,
            opp_efg_pct=factors.opp_efg_pct,
            opp_tov_pct=factors.opp_tov_pct,
            opp_oreb_pct=factors.opp_oreb_pct,
            opp_ft_rate=factors.opp_ft_rate,
            adj_ortg=adjusted.adj_ortg,
            adj_drtg=adjusted.adj_drtg,
            adj_net=adjusted.adj_net,
            adj_net_rank=composite.adj_net_rank,
            sos=adjusted.sos,
            osos=adjusted.osos,
            dsos=adjusted.dsos,
            nsos=adjusted.nsos,
            converged=efficiency.converged,
            solver_iterations=efficiency.iterations,
            qwp=composite.qwp,
            qwi=composite.qwi,
            pcr=composite.pcr,
            projected_rank=composite.projected_rank,
            is_automatic_qualifier=composite.is_automatic_qualifier,
            power_index=composite.power_index,
            power_index_rank=composite.power_index_rank,
        )

    return SeasonRatings(
        scope=scope,
        rows=rows,
        converged=efficiency.converged,
        iterations=efficiency.iterations,
        league_avg_ortg=efficiency.league_avg_ortg,
        league_avg_drtg=efficiency.league_avg_drtg,
    )
