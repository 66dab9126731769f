"""Pydantic models (schemas) for the application."""

from homeschool_planner.models.enums import (
    CatchUpPolicy,
    CommitmentType,
    SessionStatus,
    UnplacedReason,
    WarningSeverity,
)
from homeschool_planner.models.child import Child, ChildCreate, ChildUpdate
from homeschool_planner.models.topic import Topic, TopicCreate
from homeschool_planner.models.session import (
    CompleteInput,
    Session,
    SessionCreate,
    SkipInput,
    SlotInput,
    TransitionRequest,
)
from homeschool_planner.models.time_block import TimeBlock, TimeBlockCreate, TimeBlockUpdate
from homeschool_planner.models.imported_event import (
    ExpansionResult,
    ImportedEvent,
    ImportedEventCreate,
    ImportedEventUpdate,
    Occurrence,
)
from homeschool_planner.models.catch_up import CatchUpEntry, CatchUpPriorityUpdate
from homeschool_planner.models.schedule import (
    DayCapacity,
    PlacedSession,
    PlacementReport,
    QualityReport,
    QualityWarning,
    SessionCompletedEvent,
    UnplacedSession,
    WeekCapacity,
)

__all__ = [
    # Enums
    "SessionStatus",
    "CommitmentType",
    "CatchUpPolicy",
    "UnplacedReason",
    "WarningSeverity",
    # Child / Topic
    "Child",
    "ChildCreate",
    "ChildUpdate",
    "Topic",
    "TopicCreate",
    # Session
    "Session",
    "SessionCreate",
    "SlotInput",
    "SkipInput",
    "CompleteInput",
    "TransitionRequest",
    # Calendar
    "TimeBlock",
    "TimeBlockCreate",
    "TimeBlockUpdate",
    "ImportedEvent",
    "ImportedEventCreate",
    "ImportedEventUpdate",
    "Occurrence",
    "ExpansionResult",
    # Catch-up
    "CatchUpEntry",
    "CatchUpPriorityUpdate",
    # Planning
    "DayCapacity",
    "WeekCapacity",
    "PlacedSession",
    "UnplacedSession",
    "PlacementReport",
    "QualityWarning",
    "QualityReport",
    "SessionCompletedEvent",
]
