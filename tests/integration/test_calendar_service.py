"""
Integration tests for the calendar service and planning queries.
"""

import asyncio
from datetime import date, datetime, time

import pytest
import pytest_asyncio

from homeschool_planner.core.exceptions import ConflictError, NotFoundError, ValidationError
from homeschool_planner.infrastructure.local.catch_up_repository import SqliteCatchUpRepository
from homeschool_planner.infrastructure.local.child_repository import SqliteChildRepository
from homeschool_planner.infrastructure.local.imported_event_repository import SqliteImportedEventRepository
from homeschool_planner.infrastructure.local.session_repository import SqliteSessionRepository
from homeschool_planner.infrastructure.local.time_block_repository import SqliteTimeBlockRepository
from homeschool_planner.infrastructure.local.topic_repository import SqliteTopicRepository
from homeschool_planner.models.child import ChildCreate
from homeschool_planner.models.imported_event import ImportedEventCreate, ImportedEventUpdate
from homeschool_planner.models.time_block import TimeBlockCreate, TimeBlockUpdate
from homeschool_planner.services.calendar_service import CalendarService
from homeschool_planner.services.child_locks import ChildLockRegistry
from homeschool_planner.services.commitment_index import CommitmentIndexCache
from homeschool_planner.services.planning_service import PlanningService


@pytest.fixture
def cache():
    return CommitmentIndexCache()


@pytest.fixture
def repos(session_factory):
    return {
        "child": SqliteChildRepository(session_factory=session_factory),
        "topic": SqliteTopicRepository(session_factory=session_factory),
        "session": SqliteSessionRepository(session_factory=session_factory),
        "catch_up": SqliteCatchUpRepository(session_factory=session_factory),
        "time_block": SqliteTimeBlockRepository(session_factory=session_factory),
        "event": SqliteImportedEventRepository(session_factory=session_factory),
    }


@pytest.fixture
def calendar(repos, cache):
    return CalendarService(
        repos["child"],
        repos["time_block"],
        repos["event"],
        repos["session"],
        cache=cache,
        locks=ChildLockRegistry(),
    )


@pytest_asyncio.fixture
async def child(repos):
    return await repos["child"].create(
        ChildCreate(name="Ada", weekly_budget_minutes=2100, timezone="America/New_York")
    )


@pytest.mark.asyncio
async def test_overlapping_time_blocks_are_rejected(calendar, child):
    await calendar.create_time_block(
        child.id, TimeBlockCreate(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0), label="Co-op")
    )

    with pytest.raises(ConflictError) as exc_info:
        await calendar.create_time_block(
            child.id,
            TimeBlockCreate(day_of_week=1, start_time=time(9, 30), end_time=time(11, 0), label="Library"),
        )

    assert exc_info.value.entity_type == "time_block"
    assert exc_info.value.label == "Co-op"

    touching = await calendar.create_time_block(
        child.id, TimeBlockCreate(day_of_week=1, start_time=time(10, 0), end_time=time(11, 0), label="Library")
    )
    assert touching.label == "Library"


@pytest.mark.asyncio
async def test_update_time_block_checks_new_range(calendar, child):
    block = await calendar.create_time_block(
        child.id, TimeBlockCreate(day_of_week=2, start_time=time(9, 0), end_time=time(10, 0), label="Co-op")
    )

    with pytest.raises(ValidationError):
        await calendar.update_time_block(child.id, block.id, TimeBlockUpdate(end_time=time(8, 0)))

    moved = await calendar.update_time_block(child.id, block.id, TimeBlockUpdate(start_time=time(8, 30)))
    assert moved.start_time == time(8, 30)


@pytest.mark.asyncio
async def test_calendar_writes_invalidate_cached_index(calendar, child, cache):
    await calendar.commitments_for(child.id, day_of_week=1)
    assert cache.get(child.id) is not None

    block = await calendar.create_time_block(
        child.id, TimeBlockCreate(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0), label="Co-op")
    )
    assert cache.get(child.id) is None

    commitments = await calendar.commitments_for(child.id, day_of_week=1)
    assert commitments.busy_minutes == 60
    assert commitments.entries[0].source_id == block.id

    await calendar.delete_time_block(child.id, block.id)
    commitments = await calendar.commitments_for(child.id, day_of_week=1)
    assert commitments.busy_minutes == 0


@pytest.mark.asyncio
async def test_malformed_recurrence_is_recorded_on_event(calendar, child):
    event = await calendar.create_event(
        child.id,
        ImportedEventCreate(
            summary="Orchestra",
            dtstart=datetime(2024, 9, 3, 16, 0),
            dtend=datetime(2024, 9, 3, 17, 0),
            frequency="MONTHLY",
            timezone="America/New_York",
        ),
    )

    assert event.recurrence_error
    stored = await calendar.get_event(child.id, event.id)
    assert stored.recurrence_error == event.recurrence_error

    preview = await calendar.preview_occurrences(child.id, event.id)
    assert len(preview.occurrences) == 1
    assert preview.error == event.recurrence_error

    fixed = await calendar.update_event(child.id, event.id, ImportedEventUpdate(frequency="WEEKLY", count=4))
    assert fixed.recurrence_error is None
    preview = await calendar.preview_occurrences(child.id, event.id)
    assert len(preview.occurrences) == 4


@pytest.mark.asyncio
async def test_commitments_for_date_uses_child_timezone(calendar, child):
    await calendar.create_event(
        child.id,
        ImportedEventCreate(
            summary="Piano",
            dtstart=datetime(2024, 9, 2, 19, 0),
            dtend=datetime(2024, 9, 2, 20, 0),
            frequency="WEEKLY",
            count=10,
            timezone="UTC",
        ),
    )

    commitments = await calendar.commitments_for(child.id, on_date=date(2024, 9, 9))

    assert commitments.day_of_week == 1
    assert [(e.start_time, e.end_time) for e in commitments.entries] == [(time(15, 0), time(16, 0))]


@pytest.mark.asyncio
async def test_commitments_for_rejects_mismatched_day(calendar, child):
    with pytest.raises(ValidationError):
        await calendar.commitments_for(child.id, day_of_week=2, on_date=date(2024, 9, 9))


@pytest.mark.asyncio
async def test_unknown_child_is_not_found(calendar):
    from uuid import uuid4

    with pytest.raises(NotFoundError):
        await calendar.list_time_blocks(uuid4())


@pytest.mark.asyncio
async def test_capacity_reflects_time_blocks(repos, calendar, child):
    await calendar.create_time_block(
        child.id, TimeBlockCreate(day_of_week=1, start_time=time(9, 0), end_time=time(10, 30), label="Co-op")
    )
    planning = PlanningService(
        repos["child"], repos["session"], repos["time_block"], repos["event"], repos["topic"], repos["catch_up"]
    )

    week = await planning.capacity(child.id, date(2024, 9, 4))

    assert week.week_start == date(2024, 9, 2)
    assert week.days[0].fixed_minutes == 90
    assert week.days[0].remaining_minutes == 210
    assert week.days[1].remaining_minutes == 300


@pytest.mark.asyncio
async def test_catch_up_priority_must_be_in_range(repos, child):
    planning = PlanningService(
        repos["child"], repos["session"], repos["time_block"], repos["event"], repos["topic"], repos["catch_up"]
    )

    with pytest.raises(ValidationError):
        await planning.update_catch_up_priority(child.id, child.id, 9)


class _PausingEventRepository(SqliteImportedEventRepository):
    """Holds ``list`` open until released so a write can land mid-read."""

    def __init__(self, session_factory):
        super().__init__(session_factory=session_factory)
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

    async def list(self, child_id):
        self.reached.set()
        await self.release.wait()
        return await super().list(child_id)


@pytest.mark.asyncio
async def test_index_built_during_a_write_is_not_cached(session_factory, repos, cache, child):
    events = _PausingEventRepository(session_factory)
    calendar = CalendarService(
        repos["child"], repos["time_block"], events, repos["session"], cache=cache, locks=ChildLockRegistry()
    )

    reader = asyncio.create_task(calendar.commitments_for(child.id, day_of_week=1))
    await events.reached.wait()
    block = await calendar.create_time_block(
        child.id, TimeBlockCreate(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0), label="Co-op")
    )
    events.release.set()
    await reader

    assert cache.get(child.id) is None
    commitments = await calendar.commitments_for(child.id, day_of_week=1)
    assert commitments.busy_minutes == 60
    assert commitments.entries[0].source_id == block.id
    assert cache.get(child.id).find_overlap(1, 9 * 60 + 30, 10 * 60 + 15).source_id == block.id
