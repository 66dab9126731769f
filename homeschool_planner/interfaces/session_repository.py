"""
Learning session repository interface.

Defines contract for session persistence. A catch-up entry exists exactly
while its session is SKIPPED, so implementations must write the session row
and the entry in one transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from homeschool_planner.models.catch_up import CatchUpEntry
from homeschool_planner.models.enums import SessionStatus
from homeschool_planner.models.session import Session


class ISessionRepository(ABC):
    """Abstract interface for learning session persistence."""

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Insert a new session."""
        pass

    @abstractmethod
    async def get(self, child_id: UUID, session_id: UUID) -> Optional[Session]:
        """Get a session of a child by ID."""
        pass

    @abstractmethod
    async def list(
        self,
        child_id: UUID,
        status: Optional[SessionStatus] = None,
    ) -> list[Session]:
        """List sessions of a child, optionally filtered by status."""
        pass

    @abstractmethod
    async def save(self, session: Session) -> Session:
        """
        Persist the session's current state.

        Removes the session's catch-up entry in the same transaction when the
        new status is not SKIPPED. Raises NotFoundError if the row is gone.
        """
        pass

    @abstractmethod
    async def skip(self, session: Session, entry: CatchUpEntry) -> Session:
        """
        Persist a SKIPPED session and insert its catch-up entry atomically.

        Raises ConcurrencyConflictError if an entry already exists.
        """
        pass

    @abstractmethod
    async def delete(self, child_id: UUID, session_id: UUID) -> bool:
        """Delete a session and its catch-up entry."""
        pass
