"""
Child models.

A child owns sessions, time blocks and imported calendar events.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from homeschool_planner.core.config import get_settings

settings = get_settings()


def _validate_day_budgets(value: Optional[dict[int, int]]) -> Optional[dict[int, int]]:
    if value is None:
        return value
    for day, minutes in value.items():
        if day < 1 or day > 7:
            raise ValueError("per_day_budget_minutes keys must be ISO weekdays 1-7")
        if minutes < 0:
            raise ValueError("per_day_budget_minutes values must be non-negative")
    return value


class ChildBase(BaseModel):
    """Base fields for a child."""

    name: str = Field(..., min_length=1, max_length=200)
    weekly_budget_minutes: int = Field(settings.DEFAULT_WEEKLY_BUDGET_MINUTES, ge=0, le=7 * 24 * 60)
    per_day_budget_minutes: dict[int, int] = Field(
        default_factory=dict,
        description="Optional per-day override, ISO weekday (1=Monday ... 7=Sunday) -> minutes",
    )
    timezone: str = Field(settings.DEFAULT_TIMEZONE, description="IANA display time zone")
    max_sessions_per_day: Optional[int] = Field(None, ge=1, le=24)

    @field_validator("per_day_budget_minutes")
    @classmethod
    def check_day_budgets(cls, value):
        return _validate_day_budgets(value)


class ChildCreate(ChildBase):
    """Create a new child."""

    pass


class ChildUpdate(BaseModel):
    """Update child fields."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    weekly_budget_minutes: Optional[int] = Field(None, ge=0, le=7 * 24 * 60)
    per_day_budget_minutes: Optional[dict[int, int]] = None
    timezone: Optional[str] = None
    max_sessions_per_day: Optional[int] = Field(None, ge=1, le=24)

    @field_validator("per_day_budget_minutes")
    @classmethod
    def check_day_budgets(cls, value):
        return _validate_day_budgets(value)


class Child(ChildBase):
    """Child with metadata."""

    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    def day_budget(self, day_of_week: int) -> int:
        """Learning minutes available on an ISO weekday before commitments."""
        override = self.per_day_budget_minutes.get(day_of_week)
        if override is not None:
            return override
        return self.weekly_budget_minutes // 7
