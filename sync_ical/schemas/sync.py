from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class RunResult(BaseModel):
    """
    Outcome of reconciling one channel connection.

    Counts reflect the writes made before any failure, so an aborted run can
    still report partial progress alongside its error.
    """

    success: bool = Field(..., description="True when the run completed without error")
    found: int = Field(0, description="Unique events parsed from the feed")
    created: int = Field(0, description="Reservations created")
    updated: int = Field(0, description="Reservations whose dates or guest name changed")
    skipped: int = Field(0, description="Feed events rejected for an empty or inverted interval")
    error: Optional[str] = Field(None, description="Failure reason, None on success")


class ConnectionSyncResult(BaseModel):
    """
    Per-connection entry of a batch run.
    """

    connection_id: UUID
    property_name: str
    channel: str
    success: bool
    created: int = 0
    updated: int = 0
    error: Optional[str] = None


class BatchStatus(BaseModel):
    """
    Operator-visible snapshot of the scheduler.
    """

    is_running: bool
    last_run_at: Optional[datetime] = Field(None, description="Completion time of the last batch")
    last_results: list[ConnectionSyncResult] = Field(default_factory=list)
    next_run_at: Optional[datetime] = Field(None, description="last_run_at plus the interval")
