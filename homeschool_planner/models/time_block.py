"""
Time block models.

A time block is a weekly, indefinitely recurring fixed commitment
(e.g. "Co-op, Monday 09:00-12:00").
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class TimeBlockBase(BaseModel):
    """Base fields for time blocks."""

    day_of_week: int = Field(..., ge=1, le=7, description="1=Monday ... 7=Sunday")
    start_time: time
    end_time: time
    label: str = Field(..., min_length=1, max_length=200)

    @model_validator(mode="after")
    def validate_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class TimeBlockCreate(TimeBlockBase):
    pass


class TimeBlockUpdate(BaseModel):
    """Update time block fields."""

    day_of_week: Optional[int] = Field(None, ge=1, le=7)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    label: Optional[str] = Field(None, min_length=1, max_length=200)


class TimeBlock(TimeBlockBase):
    """Time block with metadata."""

    id: UUID
    child_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
