"""
Enum definitions for the application.

These enums are used across models and provide type-safe status values.
"""

from enum import Enum


class SessionStatus(str, Enum):
    """Learning session lifecycle status."""

    BACKLOG = "BACKLOG"
    PLANNED = "PLANNED"
    SCHEDULED = "SCHEDULED"
    DONE = "DONE"
    SKIPPED = "SKIPPED"


class CommitmentType(str, Enum):
    """
    How firmly a scheduled session holds its slot.

    FIXED = Must happen at this time
    PREFERRED = Should happen at this time, can move if needed
    FLEXIBLE = Any open slot works
    """

    FIXED = "FIXED"
    PREFERRED = "PREFERRED"
    FLEXIBLE = "FLEXIBLE"


class CatchUpPolicy(str, Enum):
    """Ordering applied to catch-up entries before redistribution."""

    OLDEST_FIRST = "oldest_first"
    PRIORITY_FIRST = "priority_first"
    LONGEST_FIRST = "longest_first"


class WarningSeverity(str, Enum):
    """Severity of an advisory quality warning."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class UnplacedReason(str, Enum):
    """Why a catch-up entry was not placed during redistribution."""

    NO_SLOT = "no_slot"
    BATCH_LIMIT = "batch_limit"
    CONFLICT = "conflict"
    STALE = "stale"


class CapacityStatus(str, Enum):
    """How full a day is, by share of its budget in use."""

    LIGHT = "light"
    MODERATE = "moderate"
    BUSY = "busy"
    OVERLOADED = "overloaded"


# Catch-up priority derived from the commitment type held when the session was skipped.
CATCH_UP_PRIORITY_BY_COMMITMENT: dict[CommitmentType, int] = {
    CommitmentType.FIXED: 1,
    CommitmentType.PREFERRED: 2,
    CommitmentType.FLEXIBLE: 3,
}
