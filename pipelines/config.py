"""
Pipeline Configuration

Immutable configuration dataclasses: pipeline metadata, and the rating
options every transformer receives explicitly.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

# RPI = 0.30 x WP + 0.50 x OWP + 0.20 x OOWP
DEFAULT_RPI_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {"wp": 0.30, "owp": 0.50, "oowp": 0.20}
)

# Quad Win Points per win in each quadrant
DEFAULT_QWP_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {"q1": 4.0, "q2": 2.0, "q3": 1.0, "q4": 0.5}
)

# Quality Win Index: credit per win, penalty per loss (losses are subtracted)
DEFAULT_QWI_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "q1_win": 1.0, "q1_loss": 0.25,
        "q2_win": 0.6, "q2_loss": 0.5,
        "q3_win": 0.3, "q3_loss": 0.75,
        "q4_win": 0.1, "q4_loss": 1.0,
    }
)

# Power Index component weights, applied to 0-100 normalized components
DEFAULT_POWER_INDEX_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "adj_ortg": 0.35,
        "inv_adj_drtg": 0.35,
        "sos": 0.15,
        "win_pct": 0.075,
        "qwi": 0.075,
    }
)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable configuration for a pipeline.

    Attributes:
        name: Internal name used for tracking (e.g., "team_ratings")
        display_name: Human-readable name (e.g., "Team Ratings")
        description: What this pipeline does
        target_table: Primary table this pipeline writes to
        timeout_seconds: Maximum time for pipeline execution
        depends_on: Pipeline names that must complete first
    """

    name: str
    display_name: str
    description: str
    target_table: str

    timeout_seconds: int = 600
    depends_on: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate configuration."""
        if not self.name:
            raise ValueError("Pipeline name is required")
        if not self.target_table:
            raise ValueError("Pipeline target_table is required")


@dataclass(frozen=True)
class RatingOptions:
    """
    Tunable constants of one ratings computation.

    Attributes:
        max_iterations: Solver iteration cap
        threshold: Solver convergence threshold on max |delta Adj NET|
        damping: Blend of computed and previous values per iteration (1.0 = replace)
        include_non_league: Rate every game, including those against out-of-league
            opponents (False restricts the solver to in-league games)
        min_games: Minimum in-league games for composite ranks
        field_size: Projected field size for automatic qualifiers
        exclude_national_tournament: Drop national tournament games from the run
        rpi_weights, qwp_weights, qwi_weights, power_index_weights: Formula weights
    """

    max_iterations: int = 100
    threshold: float = 0.05
    damping: float = 0.5
    include_non_league: bool = True
    min_games: int = 1
    field_size: int = 64
    exclude_national_tournament: bool = False
    rpi_weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_RPI_WEIGHTS)
    qwp_weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_QWP_WEIGHTS)
    qwi_weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_QWI_WEIGHTS)
    power_index_weights: Mapping[str, float] = field(
        default_factory=lambda: DEFAULT_POWER_INDEX_WEIGHTS
    )

    def __post_init__(self):
        _check_keys("rpi_weights", self.rpi_weights, DEFAULT_RPI_WEIGHTS)
        _check_keys("qwp_weights", self.qwp_weights, DEFAULT_QWP_WEIGHTS)
        _check_keys("qwi_weights", self.qwi_weights, DEFAULT_QWI_WEIGHTS)
        _check_keys("power_index_weights", self.power_index_weights, DEFAULT_POWER_INDEX_WEIGHTS)
        if not 0.0 < self.damping <= 1.0:
            raise ValueError("damping must be in (0, 1]")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")

    @classmethod
    def from_settings(cls, settings, min_games: Optional[int] = None) -> "RatingOptions":
        """
        Build options from application settings.

        Weight settings left as None keep the defaults above; a partial
        override dict is merged over the defaults.
        """
        return cls(
            max_iterations=settings.solver_max_iterations,
            threshold=settings.solver_threshold,
            damping=settings.solver_damping,
            include_non_league=settings.efficiency_include_non_league,
            min_games=settings.min_games if min_games is None else min_games,
            field_size=settings.field_size,
            exclude_national_tournament=settings.exclude_national_tournament,
            rpi_weights=_merge(DEFAULT_RPI_WEIGHTS, settings.rpi_weights),
            qwp_weights=_merge(DEFAULT_QWP_WEIGHTS, settings.qwp_weights),
            qwi_weights=_merge(DEFAULT_QWI_WEIGHTS, settings.qwi_weights),
            power_index_weights=_merge(DEFAULT_POWER_INDEX_WEIGHTS, settings.power_index_weights),
        )


def _merge(defaults: Mapping[str, float], override: Optional[dict]) -> Mapping[str, float]:
    if not override:
        return defaults
    return MappingProxyType({**defaults, **override})


def _check_keys(name: str, weights: Mapping[str, float], defaults: Mapping[str, float]) -> None:
    if set(weights) != set(defaults):
        expected = ", ".join(defaults)
        raise ValueError(f"{name} must define exactly: {expected}")
