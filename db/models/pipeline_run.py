"""
Pipeline Run Model

Tracks ratings run history for auditing. Each run creates a record with
its league/season scope, status, timing, and error info.
"""

import uuid
from datetime import datetime

from peewee import (
    UUIDField,
    CharField,
    DateTimeField,
    IntegerField,
    TextField,
)

from db.base import BaseModel

STATUS_RUNNING = "running"
STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUS_CANCELLED = "cancelled"


class PipelineRun(BaseModel):
    """
    Audit row for one ratings run.

    A row starts as running and ends as success, failed or cancelled. Only
    a success row has a snapshot behind it; failed and cancelled rows keep
    the error text. league/season are null for unscoped pipelines.
    """

    id = UUIDField(primary_key=True, default=uuid.uuid4)
    pipeline_name = CharField(max_length=50, index=True)
    league = CharField(max_length=20, null=True)
    season = CharField(max_length=10, null=True)
    started_at = DateTimeField()
    completed_at = DateTimeField(null=True)
    status = CharField(max_length=20, index=True)  # running, success, failed, cancelled
    records_processed = IntegerField(default=0)
    error_message = TextField(null=True)

    class Meta:
        table_name = "pipeline_runs"

    def __repr__(self) -> str:
        return f"<PipelineRun({self.pipeline_name} {self.league}/{self.season} {self.status} id={self.id})>"

    @classmethod
    def start_run(
        cls,
        pipeline_name: str,
        league: str | None = None,
        season: str | None = None,
    ) -> "PipelineRun":
        """Insert the audit row for a run that is starting now."""
        return cls.create(
            id=uuid.uuid4(),
            pipeline_name=pipeline_name,
            league=league,
            season=season,
            started_at=datetime.utcnow(),
            status=STATUS_RUNNING,
        )

    def mark_success(self, records_processed: int = 0) -> None:
        self.records_processed = records_processed
        self._finish(STATUS_SUCCESS)

    def mark_failed(self, error_message: str) -> None:
        self._finish(STATUS_FAILED, error_message)

    def mark_cancelled(self, error_message: str) -> None:
        self._finish(STATUS_CANCELLED, error_message)

    def _finish(self, status: str, error_message: str | None = None) -> None:
        self.status = status
        self.completed_at = datetime.utcnow()
        self.error_message = error_message
        self.save()

    @classmethod
    def get_latest_successful(
        cls,
        pipeline_name: str,
        league: str | None = None,
        season: str | None = None,
    ) -> "PipelineRun | None":
        """Most recent successful run of a pipeline, optionally narrowed to a scope."""
        query = cls.select().where(
            (cls.pipeline_name == pipeline_name) & (cls.status == STATUS_SUCCESS)
        )
        if league is not None:
            query = query.where(cls.league == league)
        if season is not None:
            query = query.where(cls.season == season)
        return query.order_by(cls.completed_at.desc()).first()
