"""Domain records handed to the security layer by the tracking store.

Only the fields the export pipeline reads are modelled here.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class TimeEntry(BaseModel):
    """A single time-tracking entry."""
    id: int = Field(..., description="Entry identifier")
    project_id: int = Field(..., description="Owning project")
    task_id: int = Field(..., description="Owning task")
    start: datetime = Field(..., description="When tracking started (UTC)")
    end: Optional[datetime] = Field(
        default=None,
        description="When tracking stopped; None while still running"
    )
    notes: Optional[str] = Field(
        default=None,
        description="Free-text notes"
    )
    git_commits: List[str] = Field(
        default_factory=list,
        description="Linked commit references"
    )
    
    @field_validator("start", "end")
    @classmethod
    def normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are taken as UTC
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    
    @property
    def is_active(self) -> bool:
        return self.end is None
    
    def duration_seconds(self) -> int:
        """Elapsed seconds, measured up to now for a running entry."""
        end = self.end or datetime.now(timezone.utc)
        return int((end - self.start).total_seconds())


class EntryWithDetails(BaseModel):
    """An entry joined with its project and task names."""
    entry: TimeEntry
    project_name: str
    task_name: str
    project_color: Optional[str] = None
