"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class PlannerError(Exception):
    """Base exception for the homeschool planner."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(PlannerError):
    """Resource not found."""

    pass


class ValidationError(PlannerError):
    """Missing or malformed input, or a status transition outside the table."""

    pass


class ConflictError(PlannerError):
    """A candidate time range collides with a fixed commitment or another session.

    ``details`` names the colliding entity: ``entity_type``, ``entity_id`` and ``label``.
    """

    def __init__(
        self,
        message: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        label: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={"entity_type": entity_type, "entity_id": entity_id, "label": label},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.label = label


class CapacityExceededError(PlannerError):
    """Scheduling would exceed the day's remaining capacity (strict mode only)."""

    pass


class MalformedRecurrenceError(PlannerError):
    """An imported recurrence rule could not be expanded as written."""

    def __init__(self, message: str, event_id: Optional[str] = None):
        super().__init__(message, details={"event_id": event_id})
        self.event_id = event_id


class ConcurrencyConflictError(PlannerError):
    """The data changed between planning and applying a placement."""

    pass


class InfrastructureError(PlannerError):
    """Infrastructure-related error (DB, event delivery, etc.)."""

    pass
