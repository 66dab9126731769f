"""
Unit tests for the SQLite child and session repositories.
"""

from datetime import date, datetime, time, timezone
from uuid import uuid4

import pytest

from homeschool_planner.core.exceptions import ConcurrencyConflictError, NotFoundError
from homeschool_planner.infrastructure.local.catch_up_repository import SqliteCatchUpRepository
from homeschool_planner.infrastructure.local.child_repository import SqliteChildRepository
from homeschool_planner.infrastructure.local.session_repository import SqliteSessionRepository
from homeschool_planner.models.catch_up import CatchUpEntry
from homeschool_planner.models.child import ChildCreate, ChildUpdate
from homeschool_planner.models.enums import CommitmentType, SessionStatus
from homeschool_planner.models.session import Session


def _session(child_id, **overrides) -> Session:
    now = datetime(2024, 8, 1, tzinfo=timezone.utc)
    data = {
        "id": uuid4(),
        "child_id": child_id,
        "topic_id": uuid4(),
        "status": SessionStatus.SCHEDULED,
        "commitment_type": CommitmentType.PREFERRED,
        "scheduled_day_of_week": 1,
        "scheduled_start_time": time(9, 0),
        "scheduled_end_time": time(9, 45),
        "estimated_minutes": 45,
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return Session(**data)


def _entry(session: Session) -> CatchUpEntry:
    return CatchUpEntry(
        id=uuid4(),
        session_id=session.id,
        child_id=session.child_id,
        topic_id=session.topic_id,
        estimated_minutes=session.estimated_minutes,
        skip_date=date(2024, 9, 2),
        skip_reason="sick",
        created_at=datetime(2024, 9, 2, 8, 0, tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
async def test_child_day_budgets_round_trip(session_factory):
    repo = SqliteChildRepository(session_factory=session_factory)

    created = await repo.create(ChildCreate(name="Ada", per_day_budget_minutes={1: 240, 6: 0}))
    updated = await repo.update(created.id, ChildUpdate(weekly_budget_minutes=600))

    assert created.per_day_budget_minutes == {1: 240, 6: 0}
    assert updated.weekly_budget_minutes == 600
    assert updated.per_day_budget_minutes == {1: 240, 6: 0}
    assert updated.day_budget(2) == 600 // 7


@pytest.mark.asyncio
async def test_update_unknown_child_raises(session_factory):
    repo = SqliteChildRepository(session_factory=session_factory)

    with pytest.raises(NotFoundError):
        await repo.update(uuid4(), ChildUpdate(name="Nobody"))


@pytest.mark.asyncio
async def test_session_times_round_trip(session_factory):
    repo = SqliteSessionRepository(session_factory=session_factory)
    child_id = uuid4()

    created = await repo.create(_session(child_id, scheduled_date=date(2024, 9, 9)))
    retrieved = await repo.get(child_id, created.id)

    assert retrieved.scheduled_start_time == time(9, 0)
    assert retrieved.scheduled_end_time == time(9, 45)
    assert retrieved.scheduled_date == date(2024, 9, 9)
    assert retrieved.commitment_type == CommitmentType.PREFERRED


@pytest.mark.asyncio
async def test_list_filters_by_status(session_factory):
    repo = SqliteSessionRepository(session_factory=session_factory)
    child_id = uuid4()
    await repo.create(_session(child_id))
    await repo.create(_session(child_id, status=SessionStatus.BACKLOG, scheduled_day_of_week=None))
    await repo.create(_session(uuid4()))

    assert len(await repo.list(child_id)) == 2
    assert len(await repo.list(child_id, status=SessionStatus.BACKLOG)) == 1


@pytest.mark.asyncio
async def test_second_catch_up_entry_for_session_is_rejected(session_factory):
    repo = SqliteSessionRepository(session_factory=session_factory)
    catch_up_repo = SqliteCatchUpRepository(session_factory=session_factory)
    child_id = uuid4()
    created = await repo.create(_session(child_id))
    skipped = created.model_copy(
        update={"status": SessionStatus.SKIPPED, "skip_date": date(2024, 9, 2), "skip_reason": "sick"}
    )

    await repo.skip(skipped, _entry(skipped))
    with pytest.raises(ConcurrencyConflictError):
        await repo.skip(skipped, _entry(skipped))

    assert len(await catch_up_repo.list(child_id)) == 1


@pytest.mark.asyncio
async def test_save_out_of_skipped_removes_entry(session_factory):
    repo = SqliteSessionRepository(session_factory=session_factory)
    catch_up_repo = SqliteCatchUpRepository(session_factory=session_factory)
    child_id = uuid4()
    created = await repo.create(_session(child_id))
    skipped = created.model_copy(
        update={"status": SessionStatus.SKIPPED, "skip_date": date(2024, 9, 2), "skip_reason": "sick"}
    )
    await repo.skip(skipped, _entry(skipped))

    await repo.save(skipped.model_copy(update={"status": SessionStatus.SCHEDULED}))

    assert await catch_up_repo.list(child_id) == []


@pytest.mark.asyncio
async def test_update_priority(session_factory):
    repo = SqliteSessionRepository(session_factory=session_factory)
    catch_up_repo = SqliteCatchUpRepository(session_factory=session_factory)
    child_id = uuid4()
    created = await repo.create(_session(child_id))
    skipped = created.model_copy(
        update={"status": SessionStatus.SKIPPED, "skip_date": date(2024, 9, 2), "skip_reason": "sick"}
    )
    await repo.skip(skipped, _entry(skipped))
    (entry,) = await catch_up_repo.list(child_id)

    updated = await catch_up_repo.update_priority(child_id, entry.id, 5)

    assert updated.priority == 5
    with pytest.raises(NotFoundError):
        await catch_up_repo.update_priority(child_id, uuid4(), 1)
