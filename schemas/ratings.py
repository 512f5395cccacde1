"""
Ratings Response Schemas

Pydantic models returned by the ratings read services.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class RankingMetric(str, Enum):
    """Orderings available from get_rankings."""

    RPI = "rpi"
    PCR = "pcr"
    PR = "pr"
    POWER_INDEX = "power_index"
    ADJ_NET = "adj_net"

    @property
    def rank_field(self) -> str:
        """Snapshot column holding the rank for this metric."""
        return {
            RankingMetric.RPI: "rpi_rank",
            RankingMetric.PCR: "pcr",
            RankingMetric.PR: "projected_rank",
            RankingMetric.POWER_INDEX: "power_index_rank",
            RankingMetric.ADJ_NET: "adj_net_rank",
        }[self]


class QuadrantRecord(BaseModel):
    """Wins and losses per quadrant."""

    q1_wins: int = 0
    q1_losses: int = 0
    q2_wins: int = 0
    q2_losses: int = 0
    q3_wins: int = 0
    q3_losses: int = 0
    q4_wins: int = 0
    q4_losses: int = 0


class RatingSnapshot(BaseModel):
    """Every stored metric for one team on one date."""

    team_id: str
    team_name: str
    conference: Optional[str] = None
    league: str
    season: str
    date_calculated: date

    # Records
    games_played: int
    wins: int
    losses: int
    win_pct: Optional[float] = None
    league_games: int
    league_wins: int
    league_losses: int

    # RPI and quadrants
    wp: Optional[float] = None
    owp: Optional[float] = None
    oowp: Optional[float] = None
    rpi: Optional[float] = None
    rpi_rank: Optional[int] = None
    quadrants: QuadrantRecord

    # Efficiency
    ortg: Optional[float] = None
    drtg: Optional[float] = None
    net_rating: Optional[float] = None
    pace: Optional[float] = None
    efg_pct: Optional[float] = None
    tov_pct: Optional[float] = None
    oreb_pct: Optional[float] = None
    ft_rate: Optional[float] = None
    opp_efg_pct: Optional[float] = None
    opp_tov_pct: Optional[float] = None
    opp_oreb_pct: Optional[float] = None
    opp_ft_rate: Optional[float] = None
    adj_ortg: Optional[float] = None
    adj_drtg: Optional[float] = None
    adj_net: Optional[float] = None
    adj_net_rank: Optional[int] = None
    sos: Optional[float] = None
    osos: Optional[float] = None
    dsos: Optional[float] = None
    nsos: Optional[float] = None
    converged: bool = True
    solver_iterations: int = 0

    # Composite
    qwp: Optional[float] = None
    qwi: Optional[float] = None
    pcr: Optional[int] = None
    projected_rank: Optional[int] = None
    is_automatic_qualifier: bool = False
    power_index: Optional[float] = None
    power_index_rank: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> "RatingSnapshot":
        """Build from a TeamRating row."""
        data = {
            name: getattr(row, name)
            for name in cls.model_fields
            if name != "quadrants"
        }
        data["quadrants"] = quadrant_record_from_row(row)
        return cls(**data)


def quadrant_record_from_row(row) -> QuadrantRecord:
    return QuadrantRecord(
        **{name: getattr(row, name) for name in QuadrantRecord.model_fields}
    )
