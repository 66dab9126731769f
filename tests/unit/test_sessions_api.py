from datetime import date, datetime, time, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import HTTPException

from homeschool_planner.api.children import get_capacity, redistribute_catch_up, update_child
from homeschool_planner.api.errors import to_http_exception
from homeschool_planner.api.sessions import delete_session, schedule_session, skip_session
from homeschool_planner.core.exceptions import (
    CapacityExceededError,
    ConcurrencyConflictError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from homeschool_planner.models.child import ChildUpdate
from homeschool_planner.models.enums import SessionStatus
from homeschool_planner.models.schedule import PlacementReport, RedistributeRequest
from homeschool_planner.models.session import Session, SkipInput, SlotInput
from homeschool_planner.services.commitment_index import FixedCommitmentIndex, commitment_index_cache


def _session(child_id, **overrides) -> Session:
    now = datetime(2024, 8, 1, tzinfo=timezone.utc)
    data = {
        "id": uuid4(),
        "child_id": child_id,
        "topic_id": uuid4(),
        "status": SessionStatus.SCHEDULED,
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return Session(**data)


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (NotFoundError("missing"), 404),
        (ValidationError("bad", details={"field": "end_time"}), 422),
        (ConflictError("taken", entity_type="time_block", entity_id="b1", label="Co-op"), 409),
        (CapacityExceededError("full"), 409),
        (ConcurrencyConflictError("raced"), 409),
        (InfrastructureError("disk"), 500),
    ],
)
def test_error_mapping(error, status_code) -> None:
    exc = to_http_exception(error)

    assert exc.status_code == status_code
    assert exc.detail["message"] == error.message
    assert exc.detail["error"] == type(error).__name__


def test_conflict_detail_names_the_blocking_entity() -> None:
    exc = to_http_exception(ConflictError("taken", entity_type="time_block", entity_id="b1", label="Co-op"))

    assert exc.detail["details"]["entity_type"] == "time_block"
    assert exc.detail["details"]["label"] == "Co-op"


@pytest.mark.asyncio
async def test_schedule_returns_updated_session() -> None:
    child_id = uuid4()
    scheduled = _session(child_id, scheduled_day_of_week=1)
    service = AsyncMock()
    service.schedule.return_value = scheduled
    slot = SlotInput(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0))

    result = await schedule_session(child_id=child_id, session_id=scheduled.id, slot=slot, service=service)

    assert result is scheduled
    service.schedule.assert_awaited_once_with(child_id, scheduled.id, slot)


@pytest.mark.asyncio
async def test_schedule_conflict_is_409() -> None:
    service = AsyncMock()
    service.schedule.side_effect = ConflictError("taken", entity_type="session", entity_id="s1", label="x")

    with pytest.raises(HTTPException) as exc_info:
        await schedule_session(
            child_id=uuid4(),
            session_id=uuid4(),
            slot=SlotInput(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0)),
            service=service,
        )

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_skip_validation_is_422() -> None:
    service = AsyncMock()
    service.skip.side_effect = ValidationError("skip_reason is required", details={"field": "skip_reason"})

    with pytest.raises(HTTPException) as exc_info:
        await skip_session(
            child_id=uuid4(),
            session_id=uuid4(),
            payload=SkipInput(skip_date=date(2024, 9, 2)),
            service=service,
        )

    assert exc_info.value.status_code == 422
    assert exc_info.value.detail["details"] == {"field": "skip_reason"}


@pytest.mark.asyncio
async def test_delete_passes_confirmation_through() -> None:
    child_id = uuid4()
    session_id = uuid4()
    service = AsyncMock()

    await delete_session(child_id=child_id, session_id=session_id, service=service, confirm=True)

    service.delete.assert_awaited_once_with(child_id, session_id, confirm=True)


@pytest.mark.asyncio
async def test_capacity_for_unknown_child_is_404() -> None:
    service = AsyncMock()
    service.capacity.side_effect = NotFoundError("Child not found")

    with pytest.raises(HTTPException) as exc_info:
        await get_capacity(child_id=uuid4(), service=service, week_of=date(2024, 9, 2))

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_redistribute_forwards_request() -> None:
    child_id = uuid4()
    planner = AsyncMock()
    planner.redistribute.return_value = PlacementReport(child_id=child_id, reference_date=date(2024, 9, 3))

    result = await redistribute_catch_up(
        child_id=child_id,
        payload=RedistributeRequest(max_sessions=3, reference_date=date(2024, 9, 3)),
        planner=planner,
        policy=None,
    )

    assert result.child_id == child_id
    planner.redistribute.assert_awaited_once_with(
        child_id, max_sessions=3, reference_date=date(2024, 9, 3), policy=None
    )


@pytest.mark.asyncio
async def test_timezone_update_invalidates_commitment_index() -> None:
    child_id = uuid4()
    commitment_index_cache.put(child_id, FixedCommitmentIndex(child_id=child_id))
    repo = AsyncMock()

    await update_child(child_id=child_id, update=ChildUpdate(timezone="Europe/Berlin"), repo=repo)

    assert commitment_index_cache.get(child_id) is None


@pytest.mark.asyncio
async def test_unknown_timezone_is_rejected() -> None:
    repo = AsyncMock()

    with pytest.raises(HTTPException) as exc_info:
        await update_child(child_id=uuid4(), update=ChildUpdate(timezone="Mars/Olympus"), repo=repo)

    assert exc_info.value.status_code == 422
    repo.update.assert_not_awaited()
