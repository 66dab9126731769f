"""
Planning output models: capacity, redistribution reports, quality warnings
and the session-completed event.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from homeschool_planner.core.config import get_settings
from homeschool_planner.models.enums import CapacityStatus, UnplacedReason, WarningSeverity

settings = get_settings()


class DayCapacity(BaseModel):
    """Capacity breakdown for one day."""

    day: date
    day_of_week: int
    budget_minutes: int
    fixed_minutes: int = Field(0, description="Merged fixed-commitment minutes")
    scheduled_minutes: int = 0
    remaining_minutes: int = 0
    session_count: int = 0
    over_committed: bool = False
    utilization_percent: float = Field(0.0, description="Fixed plus scheduled minutes as a share of the budget")
    status: CapacityStatus = CapacityStatus.LIGHT
    can_add_session: bool = True


class WeekCapacity(BaseModel):
    """Capacity for the ISO week (Monday first) containing a reference date."""

    child_id: UUID
    week_start: date
    days: list[DayCapacity]
    total_budget_minutes: int
    total_remaining_minutes: int


class CommitmentInterval(BaseModel):
    """One busy interval from the fixed-commitment index."""

    source: str = Field(..., description="time_block | imported_event")
    source_id: Optional[UUID] = None
    label: str = ""
    start_time: time
    end_time: time


class DayCommitments(BaseModel):
    """Index query result for one day."""

    day_of_week: int
    on_date: Optional[date] = None
    entries: list[CommitmentInterval] = Field(default_factory=list)
    busy_minutes: int = 0
    warnings: list[str] = Field(default_factory=list)


class PlacedSession(BaseModel):
    """Catch-up entry that was placed."""

    session_id: UUID
    scheduled_date: date
    day_of_week: int
    start_time: time
    end_time: time


class UnplacedSession(BaseModel):
    """Catch-up entry that could not be placed, with reason."""

    session_id: UUID
    reason: UnplacedReason
    detail: Optional[str] = None


class PlacementReport(BaseModel):
    """Outcome of one redistribution run."""

    child_id: UUID
    reference_date: date
    placed: list[PlacedSession] = Field(default_factory=list)
    unplaced: list[UnplacedSession] = Field(default_factory=list)


class SlotSuggestion(BaseModel):
    """Candidate slot for moving one session, ranked easiest first."""

    scheduled_date: date
    day_of_week: int
    start_time: time
    end_time: time
    capacity_used_percent: float = Field(..., description="Day utilization if the session lands here")
    difficulty: int = 0
    recommended: bool = False


class RedistributeRequest(BaseModel):
    max_sessions: int = Field(settings.CATCH_UP_DEFAULT_BATCH, ge=1)
    reference_date: date


class QualityWarning(BaseModel):
    """Advisory warning about the week's plan."""

    code: str
    severity: WarningSeverity
    message: str
    day: Optional[date] = None
    session_ids: list[UUID] = Field(default_factory=list)


class QualityReport(BaseModel):
    child_id: UUID
    week_start: date
    score: int = Field(100, ge=0, le=100)
    warnings: list[QualityWarning] = Field(default_factory=list)


class SessionCompletedEvent(BaseModel):
    """Published when a session reaches DONE."""

    session_id: UUID
    topic_id: UUID
    child_id: UUID
    completed_at: datetime
