"""
Learning session models.

A session is one instance of working on a topic for a child. Its status
moves through BACKLOG -> PLANNED -> SCHEDULED -> DONE / SKIPPED; the
allowed moves live in ``services/session_service.py``.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from homeschool_planner.models.enums import CommitmentType, SessionStatus


class Session(BaseModel):
    """Learning session with its current placement."""

    id: UUID
    child_id: UUID
    topic_id: UUID
    status: SessionStatus = SessionStatus.BACKLOG
    commitment_type: Optional[CommitmentType] = None
    scheduled_day_of_week: Optional[int] = Field(None, ge=1, le=7, description="1=Monday ... 7=Sunday")
    scheduled_date: Optional[date] = Field(
        None, description="Absolute date for one-off placements (e.g. catch-up)"
    )
    scheduled_start_time: Optional[time] = None
    scheduled_end_time: Optional[time] = None
    estimated_minutes: int = Field(30, ge=1, le=480)
    notes: Optional[str] = None
    evidence_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    skip_reason: Optional[str] = None
    skip_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @property
    def has_slot(self) -> bool:
        return (
            self.scheduled_day_of_week is not None
            and self.scheduled_start_time is not None
            and self.scheduled_end_time is not None
        )

    @property
    def slot_minutes(self) -> int:
        """Minutes occupied by the slot, falling back to the estimate."""
        if self.scheduled_start_time is None or self.scheduled_end_time is None:
            return self.estimated_minutes
        start = self.scheduled_start_time.hour * 60 + self.scheduled_start_time.minute
        end = self.scheduled_end_time.hour * 60 + self.scheduled_end_time.minute
        return max(end - start, 0)


class SessionCreate(BaseModel):
    """Create a session in BACKLOG from a topic."""

    topic_id: UUID
    estimated_minutes: Optional[int] = Field(None, ge=1, le=480)
    notes: Optional[str] = Field(None, max_length=2000)


class SlotInput(BaseModel):
    """Weekly slot for SCHEDULED transitions.

    Shape is validated by the session service so bad input surfaces as a
    ``ValidationError`` rather than a request parsing failure.
    """

    day_of_week: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    scheduled_date: Optional[date] = None
    commitment_type: Optional[CommitmentType] = None
    # Weekly slots only: first date the slot applies. Defaults to today in
    # the child's time zone.
    effective_from: Optional[date] = None


class SkipInput(BaseModel):
    skip_date: Optional[date] = None
    skip_reason: Optional[str] = None


class CompleteInput(BaseModel):
    evidence_notes: Optional[str] = Field(None, max_length=5000)


class TransitionRequest(BaseModel):
    """Generic transition command: target status plus its parameters."""

    target_status: SessionStatus
    params: dict[str, Any] = Field(default_factory=dict)
