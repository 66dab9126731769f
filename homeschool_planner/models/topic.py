"""
Topic read model.

Topics come from the curriculum subsystem; the engine only needs a name,
a default duration and an optional subject.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TopicBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)
    estimated_minutes: int = Field(30, ge=1, le=480)
    subject: Optional[str] = Field(None, max_length=100)


class TopicCreate(TopicBase):
    pass


class Topic(TopicBase):
    id: UUID
    created_at: datetime

    class Config:
        from_attributes = True
