"""
Data Transformers

Pure functions turning a season dataset into ratings. Nothing here
touches the database.
"""

from pipelines.transformers.possessions import (
    estimate_possessions,
    game_ratings,
    season_four_factors,
)
from pipelines.transformers.rpi import (
    compute_quadrants,
    compute_rpi,
    quadrant_for,
    rank_by_rpi,
)
from pipelines.transformers.efficiency import solve_adjusted_ratings
from pipelines.transformers.composite import compute_composites, projected_order
from pipelines.transformers.engine import SeasonRatings, compute_season_ratings

__all__ = [
    "estimate_possessions",
    "game_ratings",
    "season_four_factors",
    "compute_rpi",
    "rank_by_rpi",
    "quadrant_for",
    "compute_quadrants",
    "solve_adjusted_ratings",
    "compute_composites",
    "projected_order",
    "SeasonRatings",
    "compute_season_ratings",
]
