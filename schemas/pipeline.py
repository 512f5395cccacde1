from pydantic import BaseModel
from typing import Optional

from .common import ApiStatus


class PipelineResult(BaseModel):
    """Result of a single pipeline execution"""

    status: ApiStatus
    message: str
    league: Optional[str] = None
    season: Optional[str] = None
    run_id: Optional[str] = None
    started_at: str
    completed_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    records_processed: Optional[int] = None
    error: Optional[str] = None

    class Config:
        use_enum_values = True
