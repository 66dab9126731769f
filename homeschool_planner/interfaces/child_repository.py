"""
Child repository interface.

Defines contract for child persistence operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from homeschool_planner.models.child import Child, ChildCreate, ChildUpdate


class IChildRepository(ABC):
    """Abstract interface for child persistence."""

    @abstractmethod
    async def create(self, data: ChildCreate) -> Child:
        """Create a new child."""
        pass

    @abstractmethod
    async def get(self, child_id: UUID) -> Optional[Child]:
        """Get a child by ID."""
        pass

    @abstractmethod
    async def list(self, limit: int = 100, offset: int = 0) -> list[Child]:
        """List children."""
        pass

    @abstractmethod
    async def update(self, child_id: UUID, update: ChildUpdate) -> Child:
        """Update a child. Raises NotFoundError if missing."""
        pass
