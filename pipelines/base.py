"""
Base Pipeline

Abstract base class for scope-bound pipelines.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from datetime import date
from typing import ClassVar, Optional

from core.errors import RunCancelledError
from core.logging import get_logger
from db.base import db
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from pipelines.season import SeasonScope
from schemas.pipeline import PipelineResult


class BasePipeline(ABC):
    """
    A pipeline bound to one league/season scope.

    The run lifecycle (audit row, scoped logging, failure capture) lives
    here; subclasses only implement execute(). Each run works in its own
    worker thread with its own database connection, so pipelines for
    different scopes can run side by side.

    A run can be stopped cooperatively: cancel() sets an event that
    execute() polls through is_cancelled(). run() also sets it once
    config.timeout_seconds elapses.
    """

    config: ClassVar[PipelineConfig]

    def __init__(
        self,
        league: str,
        season: str,
        cancel_event: Optional[threading.Event] = None,
    ):
        if getattr(self.__class__, "config", None) is None:
            raise ValueError(
                f"{self.__class__.__name__} must define a 'config' class attribute"
            )
        self.scope = SeasonScope(league=league, season=season)
        self.cancel_event = cancel_event or threading.Event()

    @property
    def league(self) -> str:
        return self.scope.league

    @property
    def season(self) -> str:
        return self.scope.season

    @abstractmethod
    def execute(self, ctx: PipelineContext) -> None:
        """
        Do the work of one run. Called in a worker thread.

        Raises:
            RunCancelledError: When is_cancelled() turned true mid-run
            Any other exception marks the run failed
        """

    def cancel(self) -> None:
        """Ask a running execute() to stop at its next check."""
        self.cancel_event.set()

    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check_cancelled(self, stage: str) -> None:
        """Raise RunCancelledError if cancel() was called."""
        if self.is_cancelled():
            raise RunCancelledError(f"{self.config.name} {self.scope} cancelled before {stage}")

    def before_execute(self, ctx: PipelineContext) -> None:
        """Hook called before execute()."""

    def after_execute(self, ctx: PipelineContext) -> None:
        """Hook called after execute() returned normally."""

    def _run_sync(self, date_override: Optional[date] = None) -> PipelineResult:
        # Peewee connections are thread-local: open one for this worker.
        if db.is_closed():
            db.connect()

        try:
            ctx = PipelineContext(
                self.config.name,
                league=self.league,
                season=self.season,
                date_override=date_override,
            )
            ctx.start_tracking()

            try:
                self.before_execute(ctx)
                self.execute(ctx)
                self.after_execute(ctx)
                return ctx.mark_success()
            except Exception as e:
                return ctx.mark_failed(e)
        finally:
            if not db.is_closed():
                db.close()

    async def run(self, date_override: Optional[date] = None) -> PipelineResult:
        """
        Run the pipeline in a worker thread.

        Args:
            date_override: Compute the run as of this date instead of today

        Returns:
            PipelineResult with status, timing and records processed
        """
        task = asyncio.ensure_future(asyncio.to_thread(self._run_sync, date_override))
        done, _ = await asyncio.wait({task}, timeout=self.config.timeout_seconds)
        if not done:
            get_logger("pipeline").warning(
                "pipeline_timeout",
                pipeline=self.config.name,
                league=self.league,
                season=self.season,
                timeout_seconds=self.config.timeout_seconds,
            )
            self.cancel()
        return await task

    @classmethod
    def get_info(cls) -> dict:
        """Pipeline information for listing."""
        return {
            "name": cls.config.name,
            "display_name": cls.config.display_name,
            "description": cls.config.description,
            "target_table": cls.config.target_table,
            "timeout_seconds": cls.config.timeout_seconds,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.config.name}, scope={self.scope})>"
