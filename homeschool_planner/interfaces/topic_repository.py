"""
Topic repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from homeschool_planner.models.topic import Topic, TopicCreate


class ITopicRepository(ABC):
    """Abstract interface for topic lookups."""

    @abstractmethod
    async def create(self, data: TopicCreate) -> Topic:
        pass

    @abstractmethod
    async def get(self, topic_id: UUID) -> Optional[Topic]:
        pass

    @abstractmethod
    async def get_many(self, topic_ids: list[UUID]) -> dict[UUID, Topic]:
        """Fetch several topics at once, keyed by ID. Missing IDs are omitted."""
        pass
