"""
Children API endpoints.

Child CRUD plus the per-child planning views: weekly capacity, quality
review, fixed commitments and the catch-up queue.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from homeschool_planner.api.deps import (
    CalendarSvc,
    ChildRepo,
    PlanningSvc,
    RedistributionSvc,
)
from homeschool_planner.api.errors import to_http_exception
from homeschool_planner.core.exceptions import NotFoundError, PlannerError
from homeschool_planner.models.catch_up import CatchUpEntry, CatchUpPriorityUpdate
from homeschool_planner.models.child import Child, ChildCreate, ChildUpdate
from homeschool_planner.models.enums import CatchUpPolicy
from homeschool_planner.models.schedule import (
    DayCommitments,
    PlacementReport,
    QualityReport,
    RedistributeRequest,
    SlotSuggestion,
    WeekCapacity,
)
from homeschool_planner.services.commitment_index import commitment_index_cache
from homeschool_planner.utils.datetime_utils import is_known_timezone

router = APIRouter()


@router.post("", response_model=Child, status_code=status.HTTP_201_CREATED)
async def create_child(payload: ChildCreate, repo: ChildRepo) -> Child:
    """Create a child."""
    if not is_known_timezone(payload.timezone):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown time zone {payload.timezone!r}",
        )
    return await repo.create(payload)


@router.get("", response_model=list[Child])
async def list_children(
    repo: ChildRepo,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> list[Child]:
    return await repo.list(limit=limit, offset=offset)


@router.get("/{child_id}", response_model=Child)
async def get_child(child_id: UUID, repo: ChildRepo) -> Child:
    child = await repo.get(child_id)
    if not child:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {child_id} not found",
        )
    return child


@router.patch("/{child_id}", response_model=Child)
async def update_child(child_id: UUID, update: ChildUpdate, repo: ChildRepo) -> Child:
    """Update a child. A time zone change invalidates the cached commitment index."""
    if update.timezone is not None and not is_known_timezone(update.timezone):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown time zone {update.timezone!r}",
        )
    try:
        child = await repo.update(child_id, update)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    commitment_index_cache.invalidate(child_id)
    return child


# ===========================================
# Planning views
# ===========================================


@router.get("/{child_id}/capacity", response_model=WeekCapacity)
async def get_capacity(
    child_id: UUID,
    service: PlanningSvc,
    week_of: date = Query(..., description="Any date inside the week to report"),
) -> WeekCapacity:
    """Remaining learning minutes for each day of the week containing week_of."""
    try:
        return await service.capacity(child_id, week_of)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{child_id}/quality", response_model=QualityReport)
async def get_quality(
    child_id: UUID,
    service: PlanningSvc,
    week_of: date = Query(..., description="Any date inside the week to review"),
) -> QualityReport:
    """Advisory quality score and warnings for the week containing week_of."""
    try:
        return await service.quality(child_id, week_of)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{child_id}/commitments", response_model=DayCommitments)
async def get_commitments(
    child_id: UUID,
    service: CalendarSvc,
    on_date: Optional[date] = Query(None),
    day_of_week: Optional[int] = Query(None, ge=1, le=7),
) -> DayCommitments:
    """Fixed commitments for a weekday pattern or an absolute date."""
    try:
        return await service.commitments_for(child_id, day_of_week=day_of_week, on_date=on_date)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


# ===========================================
# Catch-up queue
# ===========================================


@router.get("/{child_id}/catch-up", response_model=list[CatchUpEntry])
async def list_catch_up(child_id: UUID, service: PlanningSvc) -> list[CatchUpEntry]:
    try:
        return await service.list_catch_up(child_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/{child_id}/catch-up/{entry_id}", response_model=CatchUpEntry)
async def update_catch_up_priority(
    child_id: UUID,
    entry_id: UUID,
    payload: CatchUpPriorityUpdate,
    service: PlanningSvc,
) -> CatchUpEntry:
    try:
        return await service.update_catch_up_priority(child_id, entry_id, payload.priority)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{child_id}/catch-up/redistribute", response_model=PlacementReport)
async def redistribute_catch_up(
    child_id: UUID,
    payload: RedistributeRequest,
    planner: RedistributionSvc,
    policy: Optional[CatchUpPolicy] = Query(None, description="Override the configured ordering policy"),
) -> PlacementReport:
    """Place up to max_sessions skipped sessions into free slots after their skip date."""
    try:
        return await planner.redistribute(
            child_id,
            max_sessions=payload.max_sessions,
            reference_date=payload.reference_date,
            policy=policy,
        )
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{child_id}/sessions/{session_id}/suggestions", response_model=list[SlotSuggestion])
async def suggest_slots(
    child_id: UUID,
    session_id: UUID,
    planner: RedistributionSvc,
    reference_date: date = Query(..., description="First day to consider"),
    limit: Optional[int] = Query(None, ge=1, le=50),
) -> list[SlotSuggestion]:
    """Ranked free slots for moving one session over the next two weeks. Read-only."""
    try:
        return await planner.suggest_slots(child_id, session_id, reference_date, limit=limit)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc
