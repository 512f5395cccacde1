"""
Pipeline Context

Per-run state: the audit row, the scoped logger, timing and the record
count that ends up in the PipelineResult.
"""

from __future__ import annotations

import traceback
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

import pytz

from core.errors import RunCancelledError
from core.logging import bind_run_context, clear_run_context, get_logger
from db.models.pipeline_run import PipelineRun
from schemas.common import ApiStatus
from schemas.pipeline import PipelineResult

RUN_TIMEZONE = pytz.timezone("US/Central")


@dataclass
class PipelineContext:
    """
    State of one pipeline run for one league/season.

    start_tracking() inserts the PipelineRun row and binds the run id and
    scope into the structlog context, so events logged anywhere in the
    worker thread carry them. Exactly one of mark_success() / mark_failed()
    ends the run; both unbind the context again.

        ctx = PipelineContext("team_ratings", league="mens", season="2025-26")
        ctx.start_tracking()
        try:
            ctx.increment_records(written)
            return ctx.mark_success()
        except Exception as e:
            return ctx.mark_failed(e)
    """

    pipeline_name: str
    league: Optional[str] = None
    season: Optional[str] = None
    run_id: uuid.UUID = field(default_factory=uuid.uuid4)
    started_at: datetime = field(default_factory=lambda: datetime.now(RUN_TIMEZONE))
    records_processed: int = 0
    date_override: Optional[date] = None

    _db_run: Optional[PipelineRun] = field(default=None, repr=False)
    _log: Any = field(default=None, repr=False)

    def __post_init__(self):
        self._log = get_logger("pipeline").bind(
            pipeline=self.pipeline_name,
            league=self.league,
            season=self.season,
        )

    @property
    def log(self):
        return self._log

    @property
    def run_date(self) -> date:
        """Date the run is computed as of: the override, else today in run time."""
        if self.date_override:
            return self.date_override
        return self.started_at.date()

    def start_tracking(self) -> None:
        """Insert the audit row and adopt its id as the run id."""
        self._db_run = PipelineRun.start_run(
            self.pipeline_name, league=self.league, season=self.season
        )
        self.run_id = self._db_run.id
        bind_run_context(str(self.run_id), league=self.league, season=self.season)
        self._log = self._log.bind(run_id=str(self.run_id))
        self._log.info("pipeline_started", run_date=str(self.run_date))

    def increment_records(self, count: int = 1) -> None:
        self.records_processed += count

    def _result(self, status: ApiStatus, outcome: str, **extra: Any) -> PipelineResult:
        completed_at = datetime.now(RUN_TIMEZONE)
        return PipelineResult(
            status=status,
            message=f"{self.pipeline_name} {self.league}/{self.season} {outcome}",
            league=self.league,
            season=self.season,
            run_id=str(self.run_id),
            started_at=self.started_at.isoformat(),
            completed_at=completed_at.isoformat(),
            duration_seconds=(completed_at - self.started_at).total_seconds(),
            **extra,
        )

    def mark_success(self) -> PipelineResult:
        """Close the audit row as success."""
        if self._db_run:
            self._db_run.mark_success(records_processed=self.records_processed)

        result = self._result(
            ApiStatus.SUCCESS, "completed", records_processed=self.records_processed
        )
        self._log.info(
            "pipeline_completed",
            records_processed=self.records_processed,
            duration_seconds=result.duration_seconds,
        )
        clear_run_context()
        return result

    def mark_failed(self, error: Exception) -> PipelineResult:
        """
        Close the audit row as failed, or cancelled for a RunCancelledError.

        Call it from the except block handling ``error`` so the traceback
        lands in the result.
        """
        error_msg = f"{type(error).__name__}: {error}"
        tb = traceback.format_exc()
        cancelled = isinstance(error, RunCancelledError)

        if cancelled:
            if self._db_run:
                self._db_run.mark_cancelled(error_msg)
            self._log.warning("pipeline_cancelled", error=error_msg, iteration=error.iteration)
        else:
            if self._db_run:
                self._db_run.mark_failed(error_msg)
            self._log.error("pipeline_failed", error=error_msg, traceback=tb)
        clear_run_context()

        return self._result(
            ApiStatus.ERROR,
            "cancelled" if cancelled else "failed",
            error=f"{error_msg}\n{tb}",
        )
