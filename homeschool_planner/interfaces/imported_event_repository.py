"""
Imported event repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from homeschool_planner.models.imported_event import (
    ImportedEvent,
    ImportedEventCreate,
    ImportedEventUpdate,
)


class IImportedEventRepository(ABC):
    """Abstract interface for imported calendar event persistence."""

    @abstractmethod
    async def create(self, child_id: UUID, data: ImportedEventCreate) -> ImportedEvent:
        pass

    @abstractmethod
    async def get(self, child_id: UUID, event_id: UUID) -> Optional[ImportedEvent]:
        pass

    @abstractmethod
    async def list(self, child_id: UUID) -> list[ImportedEvent]:
        pass

    @abstractmethod
    async def update(self, child_id: UUID, event_id: UUID, update: ImportedEventUpdate) -> ImportedEvent:
        pass

    @abstractmethod
    async def delete(self, child_id: UUID, event_id: UUID) -> bool:
        pass

    @abstractmethod
    async def set_recurrence_error(
        self, child_id: UUID, event_id: UUID, error: Optional[str]
    ) -> None:
        """Record (or clear) the reason the event's rule degraded."""
        pass
