"""Abstract interfaces for infrastructure abstraction."""

from homeschool_planner.interfaces.catch_up_repository import ICatchUpRepository
from homeschool_planner.interfaces.child_repository import IChildRepository
from homeschool_planner.interfaces.event_publisher import ISessionEventPublisher
from homeschool_planner.interfaces.imported_event_repository import IImportedEventRepository
from homeschool_planner.interfaces.session_repository import ISessionRepository
from homeschool_planner.interfaces.time_block_repository import ITimeBlockRepository
from homeschool_planner.interfaces.topic_repository import ITopicRepository

__all__ = [
    "ICatchUpRepository",
    "IChildRepository",
    "IImportedEventRepository",
    "ISessionEventPublisher",
    "ISessionRepository",
    "ITimeBlockRepository",
    "ITopicRepository",
]
