"""
Team Ratings Pipeline

Recomputes every rating for one league/season from the full set of
completed games and writes a dated snapshot.

The run loads everything up front, computes in memory, and only then
writes. A consistency error, a cancellation or any other failure before
the write leaves the snapshot table untouched; a failed write is rolled
back, so the previous snapshot stays authoritative.
"""

import threading
from typing import Optional

from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig, RatingOptions
from pipelines.context import PipelineContext
from pipelines.extractors import SeasonStoreExtractor
from pipelines.transformers.engine import compute_season_ratings
from db.models.team_ratings import TeamRating


class TeamRatingsPipeline(BasePipeline):
    """
    Compute and store ratings for one league/season.

    This pipeline:
    1. Loads teams, completed games and box scores for the scope
    2. Loads conference champions for automatic qualifiers
    3. Computes four factors, RPI, quadrants, adjusted efficiency and composites
    4. Replaces the scope's snapshot for the run date in one transaction

    Key metrics stored:
    - Records: overall and in-league W/L
    - RPI: WP, OWP, OOWP, RPI, rank, quadrant tallies
    - Efficiency: raw and adjusted ORTG/DRTG/NET, SOS variants, four factors
    - Composite: QWP, QWI, PCR, Projected Rank, Power Index
    """

    config = PipelineConfig(
        name="team_ratings",
        display_name="Team Ratings",
        description="RPI, adjusted efficiency and composite rankings for one league/season",
        target_table="team_ratings",
    )

    def __init__(
        self,
        league: str,
        season: str,
        options: Optional[RatingOptions] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        super().__init__(league, season, cancel_event=cancel_event)
        self.options = options or RatingOptions()
        self.extractor = SeasonStoreExtractor()

    def execute(self, ctx: PipelineContext) -> None:
        """Execute the team ratings pipeline."""
        run_date = ctx.run_date
        through_date = ctx.date_override

        dataset = self.extractor.extract(
            self.scope,
            through_date=through_date,
            exclude_national_tournament=self.options.exclude_national_tournament,
        )
        champions = self.extractor.load_champions(dataset)
        ctx.log.info(
            "dataset_loaded",
            teams=len(dataset.teams),
            members=len(dataset.member_ids),
            games=len(dataset.games),
            champions=sum(1 for c in champions.values() if c is not None),
        )

        if not dataset.member_ids:
            ctx.log.info("no_league_members")
            return

        ratings = compute_season_ratings(
            dataset,
            champions,
            self.options,
            should_cancel=self.is_cancelled,
        )
        if not ratings.converged:
            ctx.log.warning("ratings_not_converged", iterations=ratings.iterations)

        self.check_cancelled("snapshot write")

        written = TeamRating.write_snapshot(
            league=self.scope.league,
            season=self.scope.season,
            date_calculated=run_date,
            rows=ratings.to_snapshot_rows(),
            pipeline_run_id=ctx.run_id,
        )
        ctx.increment_records(written)
        ctx.log.info(
            "snapshot_written",
            date_calculated=str(run_date),
            rows=written,
            converged=ratings.converged,
            solver_iterations=ratings.iterations,
        )
