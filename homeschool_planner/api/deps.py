"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the infrastructure
implementations and build request-scoped services on top of them.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from homeschool_planner.interfaces.catch_up_repository import ICatchUpRepository
from homeschool_planner.interfaces.child_repository import IChildRepository
from homeschool_planner.interfaces.event_publisher import ISessionEventPublisher
from homeschool_planner.interfaces.imported_event_repository import IImportedEventRepository
from homeschool_planner.interfaces.session_repository import ISessionRepository
from homeschool_planner.interfaces.time_block_repository import ITimeBlockRepository
from homeschool_planner.interfaces.topic_repository import ITopicRepository
from homeschool_planner.services.calendar_service import CalendarService
from homeschool_planner.services.planning_service import PlanningService
from homeschool_planner.services.redistribution_planner import RedistributionPlanner
from homeschool_planner.services.session_service import SessionService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_child_repository() -> IChildRepository:
    """Get child repository instance."""
    from homeschool_planner.infrastructure.local.child_repository import SqliteChildRepository
    return SqliteChildRepository()


@lru_cache()
def get_topic_repository() -> ITopicRepository:
    """Get topic repository instance."""
    from homeschool_planner.infrastructure.local.topic_repository import SqliteTopicRepository
    return SqliteTopicRepository()


@lru_cache()
def get_session_repository() -> ISessionRepository:
    """Get learning session repository instance."""
    from homeschool_planner.infrastructure.local.session_repository import SqliteSessionRepository
    return SqliteSessionRepository()


@lru_cache()
def get_catch_up_repository() -> ICatchUpRepository:
    """Get catch-up repository instance."""
    from homeschool_planner.infrastructure.local.catch_up_repository import SqliteCatchUpRepository
    return SqliteCatchUpRepository()


@lru_cache()
def get_time_block_repository() -> ITimeBlockRepository:
    """Get time block repository instance."""
    from homeschool_planner.infrastructure.local.time_block_repository import SqliteTimeBlockRepository
    return SqliteTimeBlockRepository()


@lru_cache()
def get_imported_event_repository() -> IImportedEventRepository:
    """Get imported event repository instance."""
    from homeschool_planner.infrastructure.local.imported_event_repository import (
        SqliteImportedEventRepository,
    )
    return SqliteImportedEventRepository()


@lru_cache()
def get_event_publisher() -> ISessionEventPublisher:
    """Get session event publisher instance."""
    from homeschool_planner.infrastructure.local.event_publisher import InMemorySessionEventPublisher
    return InMemorySessionEventPublisher()


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

ChildRepo = Annotated[IChildRepository, Depends(get_child_repository)]
TopicRepo = Annotated[ITopicRepository, Depends(get_topic_repository)]
SessionRepo = Annotated[ISessionRepository, Depends(get_session_repository)]
CatchUpRepo = Annotated[ICatchUpRepository, Depends(get_catch_up_repository)]
TimeBlockRepo = Annotated[ITimeBlockRepository, Depends(get_time_block_repository)]
ImportedEventRepo = Annotated[IImportedEventRepository, Depends(get_imported_event_repository)]
EventPublisher = Annotated[ISessionEventPublisher, Depends(get_event_publisher)]


# ===========================================
# Service Dependencies
# ===========================================


def get_session_service(
    session_repo: SessionRepo,
    topic_repo: TopicRepo,
    child_repo: ChildRepo,
    time_block_repo: TimeBlockRepo,
    event_repo: ImportedEventRepo,
    publisher: EventPublisher,
) -> SessionService:
    return SessionService(
        session_repo=session_repo,
        topic_repo=topic_repo,
        child_repo=child_repo,
        time_block_repo=time_block_repo,
        event_repo=event_repo,
        publisher=publisher,
    )


def get_calendar_service(
    child_repo: ChildRepo,
    time_block_repo: TimeBlockRepo,
    event_repo: ImportedEventRepo,
    session_repo: SessionRepo,
) -> CalendarService:
    return CalendarService(child_repo, time_block_repo, event_repo, session_repo)


def get_planning_service(
    child_repo: ChildRepo,
    session_repo: SessionRepo,
    time_block_repo: TimeBlockRepo,
    event_repo: ImportedEventRepo,
    topic_repo: TopicRepo,
    catch_up_repo: CatchUpRepo,
) -> PlanningService:
    return PlanningService(child_repo, session_repo, time_block_repo, event_repo, topic_repo, catch_up_repo)


SessionSvc = Annotated[SessionService, Depends(get_session_service)]
CalendarSvc = Annotated[CalendarService, Depends(get_calendar_service)]
PlanningSvc = Annotated[PlanningService, Depends(get_planning_service)]


def get_redistribution_planner(
    session_service: SessionSvc,
    catch_up_repo: CatchUpRepo,
) -> RedistributionPlanner:
    return RedistributionPlanner(session_service, catch_up_repo)


RedistributionSvc = Annotated[RedistributionPlanner, Depends(get_redistribution_planner)]
