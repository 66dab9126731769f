"""
Imported calendar event models.

Events arrive already parsed from the calendar import subsystem. Recurrence
fields are kept as supplied so that a rule the engine cannot honour is
recorded instead of rejected.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ImportedEventBase(BaseModel):
    """Base fields for imported events."""

    summary: str = Field("", max_length=500)
    location: Optional[str] = Field(None, max_length=500)
    uid: Optional[str] = Field(None, max_length=500, description="Source calendar UID")
    dtstart: datetime = Field(..., description="Naive values are read in the event time zone")
    dtend: Optional[datetime] = None
    frequency: Optional[str] = Field(None, max_length=20, description="RRULE FREQ, only WEEKLY expands")
    interval: int = Field(1, description="RRULE INTERVAL")
    count: Optional[int] = Field(None, description="RRULE COUNT")
    until: Optional[str] = Field(
        None,
        max_length=40,
        description="RRULE UNTIL, ISO 8601 or iCalendar basic format (20241104 / 20241104T150000Z)",
    )
    timezone: str = Field("UTC", description="IANA time zone of dtstart/dtend")


class ImportedEventCreate(ImportedEventBase):
    pass


class ImportedEventUpdate(BaseModel):
    """Update imported event fields."""

    summary: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=500)
    dtstart: Optional[datetime] = None
    dtend: Optional[datetime] = None
    frequency: Optional[str] = Field(None, max_length=20)
    interval: Optional[int] = None
    count: Optional[int] = None
    until: Optional[str] = Field(None, max_length=40)
    timezone: Optional[str] = None


class ImportedEvent(ImportedEventBase):
    """Imported event with metadata."""

    id: UUID
    child_id: UUID
    recurrence_error: Optional[str] = Field(
        None, description="Recorded when the rule degraded to a single occurrence"
    )
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Occurrence(BaseModel):
    """One concrete instance of an imported event, in the child's display zone."""

    event_id: Optional[UUID] = None
    summary: str = ""
    start: datetime
    end: datetime

    @property
    def on_date(self) -> date:
        return self.start.date()

    @property
    def day_of_week(self) -> int:
        return self.start.isoweekday()

    @property
    def start_time(self) -> time:
        return self.start.time().replace(tzinfo=None)

    @property
    def end_time(self) -> time:
        return self.end.time().replace(tzinfo=None)


class ExpansionResult(BaseModel):
    """Materialized expansion of one imported event."""

    occurrences: list[Occurrence] = Field(default_factory=list)
    truncated: bool = False
    error: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
