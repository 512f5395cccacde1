"""
Pipeline Registry and Exports

Provides a registry of all available pipelines and helper functions
for running them per league/season scope.
"""

import asyncio
import threading
from datetime import date
from typing import Iterable, Optional, Type

from core.logging import get_logger
from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig, RatingOptions
from pipelines.context import PipelineContext
from pipelines.season import SeasonScope
from pipelines.team_ratings import TeamRatingsPipeline
from schemas.pipeline import PipelineResult
from schemas.common import ApiStatus


# Registry of all available pipelines
PIPELINE_REGISTRY: dict[str, Type[BasePipeline]] = {
    "team_ratings": TeamRatingsPipeline,
}


def get_pipeline(name: str, league: str, season: str, **kwargs) -> BasePipeline:
    """
    Get a pipeline instance by name for a scope.

    Args:
        name: Pipeline name (e.g., "team_ratings")
        league: League identifier
        season: Season identifier
        **kwargs: Extra constructor arguments (options, cancel_event)

    Returns:
        Instantiated pipeline

    Raises:
        KeyError: If pipeline name not found
    """
    if name not in PIPELINE_REGISTRY:
        available = ", ".join(PIPELINE_REGISTRY.keys())
        raise KeyError(f"Unknown pipeline '{name}'. Available: {available}")

    return PIPELINE_REGISTRY[name](league, season, **kwargs)


async def run_ratings(
    league: str,
    season: str,
    options: Optional[RatingOptions] = None,
    date_override: Optional[date] = None,
    cancel_event: Optional[threading.Event] = None,
) -> PipelineResult:
    """
    Run the team ratings pipeline for one league/season.

    Args:
        league: League identifier
        season: Season identifier
        options: Rating options (defaults when None)
        date_override: Compute the snapshot as of this date
        cancel_event: Set to abort the run between solver iterations

    Returns:
        PipelineResult with status and details
    """
    pipeline = get_pipeline(
        "team_ratings", league, season, options=options, cancel_event=cancel_event
    )
    return await pipeline.run(date_override=date_override)


async def run_all_scopes(
    scopes: Iterable[SeasonScope],
    options: Optional[RatingOptions] = None,
    date_override: Optional[date] = None,
) -> dict[str, PipelineResult]:
    """
    Run the ratings pipeline for several scopes concurrently.

    Scopes share no state, so each runs in its own worker thread.

    Args:
        scopes: League/season pairs to compute
        options: Rating options shared by every scope
        date_override: Compute every snapshot as of this date

    Returns:
        Dict mapping "league/season" to PipelineResult
    """
    log = get_logger("pipeline").bind(operation="run_all_scopes")

    scopes = list(scopes)
    log.info("all_scopes_started", count=len(scopes))

    results = await asyncio.gather(
        *(
            run_ratings(scope.league, scope.season, options=options, date_override=date_override)
            for scope in scopes
        )
    )
    by_scope = {str(scope): result for scope, result in zip(scopes, results)}

    success_count = sum(1 for r in results if r.status == ApiStatus.SUCCESS)
    log.info(
        "all_scopes_completed",
        success_count=success_count,
        total_count=len(results),
    )

    return by_scope


def list_pipelines() -> list[dict]:
    """
    List all available pipelines with their configurations.

    Returns:
        List of pipeline info dicts
    """
    return [cls.get_info() for cls in PIPELINE_REGISTRY.values()]


__all__ = [
    # Base classes
    "BasePipeline",
    "PipelineConfig",
    "PipelineContext",
    "RatingOptions",
    "TeamRatingsPipeline",
    # Registry functions
    "PIPELINE_REGISTRY",
    "get_pipeline",
    "run_ratings",
    "run_all_scopes",
    "list_pipelines",
]
