"""
Session event publisher interface.

Downstream consumers (spaced-repetition review scheduling) subscribe to
session-completed events.
"""

from abc import ABC, abstractmethod

from homeschool_planner.models.schedule import SessionCompletedEvent


class ISessionEventPublisher(ABC):
    """Abstract interface for publishing session lifecycle events."""

    @abstractmethod
    async def publish_completed(self, event: SessionCompletedEvent) -> None:
        """Deliver a session-completed event to subscribers."""
        pass
