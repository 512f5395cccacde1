"""
Possessions and Four Factors Transformer

Pure functions deriving possessions, efficiency ratings and Dean Oliver's
four factors from box score totals. Nothing here is persisted; undefined
values (zero denominators, non-positive possessions) come back as None.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from pipelines.season import BoxScore, TeamGame

# Free throw attempts that end a possession
FTA_POSSESSION_FACTOR = 0.44


def estimate_possessions(stats: BoxScore) -> float:
    """
    Possessions = FGA - OREB + TO + 0.44 x FTA

    Examples:
        >>> estimate_possessions(BoxScore(fga=60, oreb=10, tov=12, fta=20))
        70.8
    """
    return stats.fga - stats.oreb + stats.tov + FTA_POSSESSION_FACTOR * stats.fta


def offensive_rating(points: float, possessions: float) -> Optional[float]:
    """Points per 100 possessions, None when possessions are not positive."""
    if possessions <= 0:
        return None
    return 100.0 * points / possessions


def effective_fg_pct(stats: BoxScore) -> Optional[float]:
    """eFG% = (FGM + 0.5 x 3PM) / FGA"""
    if stats.fga <= 0:
        return None
    return (stats.fgm + 0.5 * stats.fg3m) / stats.fga


def turnover_pct(stats: BoxScore) -> Optional[float]:
    """Turnovers per 100 possessions."""
    possessions = estimate_possessions(stats)
    if possessions <= 0:
        return None
    return 100.0 * stats.tov / possessions


def offensive_rebound_pct(stats: BoxScore, opponent: BoxScore) -> Optional[float]:
    """Share (x100) of available offensive rebounds grabbed: OREB / (OREB + opp DREB)."""
    available = stats.oreb + opponent.dreb
    if available <= 0:
        return None
    return 100.0 * stats.oreb / available


def free_throw_rate(stats: BoxScore) -> Optional[float]:
    """FT Rate = FTA / FGA"""
    if stats.fga <= 0:
        return None
    return stats.fta / stats.fga


@dataclass(frozen=True)
class GameRatings:
    """Per-game efficiency of one team, from both box scores of the game."""

    possessions: float
    opponent_possessions: float
    ortg: float
    drtg: float


def game_ratings(edge: TeamGame) -> Optional[GameRatings]:
    """
    Offensive and defensive rating for one side of a game.

    DRTG uses the opponent's points over the opponent's own possession
    estimate. Returns None when either box score is missing or either
    possession estimate is not positive; such games are left out of rating
    aggregation but still count for records and RPI.
    """
    if edge.stats is None or edge.opponent_stats is None:
        return None
    possessions = estimate_possessions(edge.stats)
    opponent_possessions = estimate_possessions(edge.opponent_stats)
    if possessions <= 0 or opponent_possessions <= 0:
        return None
    return GameRatings(
        possessions=possessions,
        opponent_possessions=opponent_possessions,
        ortg=100.0 * edge.points_for / possessions,
        drtg=100.0 * edge.points_against / opponent_possessions,
    )


@dataclass(frozen=True)
class FourFactors:
    """Season four factors for a team's offence and (opp_*) defence."""

    efg_pct: Optional[float] = None
    tov_pct: Optional[float] = None
    oreb_pct: Optional[float] = None
    ft_rate: Optional[float] = None
    opp_efg_pct: Optional[float] = None
    opp_tov_pct: Optional[float] = None
    opp_oreb_pct: Optional[float] = None
    opp_ft_rate: Optional[float] = None
    pace: Optional[float] = None


def _sum_boxes(boxes: list[BoxScore]) -> BoxScore:
    return BoxScore(
        **{
            name: sum(getattr(box, name) for box in boxes)
            for name in BoxScore.__dataclass_fields__
        }
    )


def season_four_factors(edges: Iterable[TeamGame]) -> FourFactors:
    """
    Four factors over a team's games, computed from summed totals.

    Only games with both box scores and positive possessions on both sides
    are used, the same games that feed rating aggregation. Pace is the
    average of the two sides' possession estimates per game.
    """
    own: list[BoxScore] = []
    opp: list[BoxScore] = []
    pace_total = 0.0
    for edge in edges:
        ratings = game_ratings(edge)
        if ratings is None:
            continue
        own.append(edge.stats)
        opp.append(edge.opponent_stats)
        pace_total += (ratings.possessions + ratings.opponent_possessions) / 2.0

    if not own:
        return FourFactors()

    team = _sum_boxes(own)
    opponent = _sum_boxes(opp)
    return FourFactors(
        efg_pct=effective_fg_pct(team),
        tov_pct=turnover_pct(team),
        oreb_pct=offensive_rebound_pct(team, opponent),
        ft_rate=free_throw_rate(team),
        opp_efg_pct=effective_fg_pct(opponent),
        opp_tov_pct=turnover_pct(opponent),
        opp_oreb_pct=offensive_rebound_pct(opponent, team),
        opp_ft_rate=free_throw_rate(opponent),
        pace=pace_total / len(own),
    )
