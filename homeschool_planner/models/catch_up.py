"""
Catch-up entry models.

An entry is created exactly once when a session is skipped and removed when
the session is rescheduled or deleted.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CatchUpEntry(BaseModel):
    """Skipped session waiting to be redistributed."""

    id: UUID
    session_id: UUID
    child_id: UUID
    topic_id: UUID
    estimated_minutes: int
    skip_date: date
    skip_reason: str
    priority: int = Field(2, ge=1, le=5, description="1=highest ... 5=lowest")
    original_day_of_week: Optional[int] = None
    original_start_time: Optional[time] = None
    original_end_time: Optional[time] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CatchUpPriorityUpdate(BaseModel):
    priority: int = Field(..., ge=1, le=5)
