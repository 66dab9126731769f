"""
Catch-up queue repository interface.

Entries are created and removed by the session repository; this interface
covers reading and re-prioritising them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from homeschool_planner.models.catch_up import CatchUpEntry


class ICatchUpRepository(ABC):
    """Abstract interface for catch-up entries."""

    @abstractmethod
    async def list(self, child_id: UUID) -> list[CatchUpEntry]:
        """List all pending entries of a child, oldest skip first."""
        pass

    @abstractmethod
    async def get(self, child_id: UUID, entry_id: UUID) -> Optional[CatchUpEntry]:
        pass

    @abstractmethod
    async def update_priority(self, child_id: UUID, entry_id: UUID, priority: int) -> CatchUpEntry:
        """Change an entry's priority. Raises NotFoundError if missing."""
        pass
