"""
Ratings Engine Settings

Environment / .env configuration: database, default scope, solver limits,
ranking options and logging. Computations never read these directly; they
receive a RatingOptions built from them.
"""

import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment (case-insensitive)."""

    # Database (any URL understood by playhouse.db_url)
    database_url: str = "sqlite:///ratings.db"

    # Default scope for CLI runs
    default_league: str = "mens"
    default_season: str = "2025-26"
    leagues: list[str] = ["mens", "womens"]

    # Adjusted efficiency solver
    solver_max_iterations: int = 100
    solver_threshold: float = 0.05  # max |delta Adj NET| per 100 possessions
    solver_damping: float = 0.5
    efficiency_include_non_league: bool = True

    # Ranking eligibility and projected field
    min_games: int = 1
    field_size: int = 64
    exclude_national_tournament: bool = False

    # Weight overrides (None keeps the built-in constants)
    rpi_weights: Optional[dict[str, float]] = None
    qwp_weights: Optional[dict[str, float]] = None
    qwi_weights: Optional[dict[str, float]] = None
    power_index_weights: Optional[dict[str, float]] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"
    service_name: str = "team-ratings-engine"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log_level '{v}'")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"json", "console"}:
            raise ValueError(f"log_format must be json or console, got '{v}'")
        return fmt

    @field_validator("solver_damping")
    @classmethod
    def validate_damping(cls, v: float) -> float:
        """Damping is a blend factor: 0 would never move, above 1 overshoots."""
        if not 0.0 < v <= 1.0:
            raise ValueError("solver_damping must be in (0, 1]")
        return v

    @field_validator("solver_max_iterations", "field_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be >= 1")
        return v

    @field_validator("min_games")
    @classmethod
    def validate_min_games(cls, v: int) -> int:
        if v < 0:
            raise ValueError("min_games must be >= 0")
        return v


def get_settings() -> Settings:
    """Fresh Settings from the current environment (tests patch env then call this)."""
    return Settings()


# Process-wide instance read by main.py
settings = Settings()
