"""
Integration tests for skip -> catch-up -> redistribution against SQLite.
"""

from datetime import date, time

import pytest

from homeschool_planner.core.exceptions import ConflictError, ValidationError
from homeschool_planner.infrastructure.local.catch_up_repository import SqliteCatchUpRepository
from homeschool_planner.infrastructure.local.child_repository import SqliteChildRepository
from homeschool_planner.infrastructure.local.event_publisher import InMemorySessionEventPublisher
from homeschool_planner.infrastructure.local.imported_event_repository import SqliteImportedEventRepository
from homeschool_planner.infrastructure.local.session_repository import SqliteSessionRepository
from homeschool_planner.infrastructure.local.time_block_repository import SqliteTimeBlockRepository
from homeschool_planner.infrastructure.local.topic_repository import SqliteTopicRepository
from homeschool_planner.models.child import ChildCreate
from homeschool_planner.models.enums import CommitmentType, SessionStatus, UnplacedReason
from homeschool_planner.models.session import CompleteInput, SessionCreate, SkipInput, SlotInput
from homeschool_planner.models.topic import TopicCreate
from homeschool_planner.services.child_locks import ChildLockRegistry
from homeschool_planner.services.redistribution_planner import RedistributionPlanner
from homeschool_planner.services.session_service import SessionService

SKIP_DAY = date(2024, 9, 2)


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
def publisher():
    return InMemorySessionEventPublisher()


@pytest.fixture
def service(repos, publisher):
    return SessionService(
        session_repo=repos["session"],
        topic_repo=repos["topic"],
        child_repo=repos["child"],
        time_block_repo=repos["time_block"],
        event_repo=repos["event"],
        publisher=publisher,
        locks=ChildLockRegistry(),
        strict_capacity=False,
    )


async def _scheduled_sessions(repos, service, starts):
    child = await repos["child"].create(ChildCreate(name="Ada", weekly_budget_minutes=2100))
    topic = await repos["topic"].create(TopicCreate(name="Fractions", subject="Math", estimated_minutes=45))
    sessions = []
    for start in starts:
        session = await service.create_from_topic(child.id, SessionCreate(topic_id=topic.id))
        await service.plan(child.id, session.id)
        end = time(start.hour, start.minute + 45)
        session = await service.schedule(
            child.id,
            session.id,
            SlotInput(day_of_week=1, start_time=start, end_time=end, commitment_type=CommitmentType.FIXED),
        )
        sessions.append(session)
    return child, sessions


@pytest.mark.asyncio
async def test_skip_creates_exactly_one_catch_up_entry(repos, service):
    child, (session,) = await _scheduled_sessions(repos, service, [time(9, 0)])

    skipped = await service.skip(child.id, session.id, SkipInput(skip_date=SKIP_DAY, skip_reason="sick"))

    assert skipped.status == SessionStatus.SKIPPED
    entries = await repos["catch_up"].list(child.id)
    assert len(entries) == 1
    assert entries[0].session_id == session.id
    assert entries[0].priority == 1
    assert entries[0].original_start_time == time(9, 0)

    with pytest.raises(ValidationError):
        await service.skip(child.id, session.id, SkipInput(skip_date=SKIP_DAY, skip_reason="again"))
    assert len(await repos["catch_up"].list(child.id)) == 1


@pytest.mark.asyncio
async def test_redistribute_respects_batch_limit(repos, service):
    child, sessions = await _scheduled_sessions(repos, service, [time(9, 0), time(10, 0), time(11, 0)])
    for session in sessions:
        await service.skip(child.id, session.id, SkipInput(skip_date=SKIP_DAY, skip_reason="field trip"))
    planner = RedistributionPlanner(service, repos["catch_up"], lookahead_days=14)

    report = await planner.redistribute(child.id, max_sessions=2, reference_date=date(2024, 9, 3))

    assert [p.session_id for p in report.placed] == [sessions[0].id, sessions[1].id]
    assert all(p.scheduled_date == date(2024, 9, 3) for p in report.placed)
    assert [p.start_time for p in report.placed] == [time(8, 0), time(8, 45)]
    assert len(report.unplaced) == 1
    assert report.unplaced[0].session_id == sessions[2].id
    assert report.unplaced[0].reason == UnplacedReason.BATCH_LIMIT

    placed = await service.get(child.id, sessions[0].id)
    assert placed.status == SessionStatus.SCHEDULED
    assert placed.commitment_type == CommitmentType.FLEXIBLE
    assert placed.skip_date is None
    remaining = await repos["catch_up"].list(child.id)
    assert [e.session_id for e in remaining] == [sessions[2].id]


@pytest.mark.asyncio
async def test_rescheduling_a_skipped_session_clears_its_entry(repos, service):
    child, (session,) = await _scheduled_sessions(repos, service, [time(9, 0)])
    await service.skip(child.id, session.id, SkipInput(skip_date=SKIP_DAY, skip_reason="sick"))

    await service.schedule(
        child.id,
        session.id,
        SlotInput(scheduled_date=date(2024, 9, 4), start_time=time(13, 0), end_time=time(13, 45)),
    )

    assert await repos["catch_up"].list(child.id) == []


@pytest.mark.asyncio
async def test_skipped_slot_still_blocks_its_own_date(repos, service):
    child, (first, second) = await _scheduled_sessions(repos, service, [time(9, 0), time(10, 0)])
    await service.skip(child.id, first.id, SkipInput(skip_date=SKIP_DAY, skip_reason="sick"))

    with pytest.raises(ConflictError):
        await service.reschedule(
            child.id,
            second.id,
            SlotInput(scheduled_date=SKIP_DAY, start_time=time(9, 15), end_time=time(10, 0)),
        )


@pytest.mark.asyncio
async def test_completion_publishes_event(repos, service, publisher):
    child, (session,) = await _scheduled_sessions(repos, service, [time(9, 0)])
    queue = publisher.subscribe(child.id)

    done = await service.complete(child.id, session.id, CompleteInput(evidence_notes="quiz 9/10"))

    assert done.status == SessionStatus.DONE
    event = queue.get_nowait()
    assert event.session_id == session.id
    assert event.child_id == child.id


@pytest.mark.asyncio
async def test_delete_removes_session_and_entry(repos, service):
    child, (session,) = await _scheduled_sessions(repos, service, [time(9, 0)])
    await service.skip(child.id, session.id, SkipInput(skip_date=SKIP_DAY, skip_reason="sick"))

    await service.delete(child.id, session.id, confirm=True)

    assert await repos["session"].get(child.id, session.id) is None
    assert await repos["catch_up"].list(child.id) == []
