"""
Time block repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from homeschool_planner.models.time_block import TimeBlock, TimeBlockCreate, TimeBlockUpdate


class ITimeBlockRepository(ABC):
    """Abstract interface for weekly time block persistence."""

    @abstractmethod
    async def create(self, child_id: UUID, data: TimeBlockCreate) -> TimeBlock:
        pass

    @abstractmethod
    async def get(self, child_id: UUID, block_id: UUID) -> Optional[TimeBlock]:
        pass

    @abstractmethod
    async def list(self, child_id: UUID, day_of_week: Optional[int] = None) -> list[TimeBlock]:
        pass

    @abstractmethod
    async def update(self, child_id: UUID, block_id: UUID, update: TimeBlockUpdate) -> TimeBlock:
        pass

    @abstractmethod
    async def delete(self, child_id: UUID, block_id: UUID) -> bool:
        pass
