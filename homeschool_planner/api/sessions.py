"""
Learning session API endpoints.

Mounted under /children/{child_id}/sessions. Each lifecycle transition has
its own endpoint; POST /{session_id}/transition accepts a generic command.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from homeschool_planner.api.deps import SessionSvc
from homeschool_planner.api.errors import to_http_exception
from homeschool_planner.core.exceptions import PlannerError
from homeschool_planner.models.enums import SessionStatus
from homeschool_planner.models.session import (
    CompleteInput,
    Session,
    SessionCreate,
    SkipInput,
    SlotInput,
    TransitionRequest,
)

router = APIRouter()


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session(child_id: UUID, payload: SessionCreate, service: SessionSvc) -> Session:
    """Create a BACKLOG session from a topic."""
    try:
        return await service.create_from_topic(child_id, payload)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.get("", response_model=list[Session])
async def list_sessions(
    child_id: UUID,
    service: SessionSvc,
    status_filter: Optional[SessionStatus] = Query(None, alias="status"),
) -> list[Session]:
    try:
        return await service.list(child_id, status=status_filter)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{session_id}", response_model=Session)
async def get_session(child_id: UUID, session_id: UUID, service: SessionSvc) -> Session:
    try:
        return await service.get(child_id, session_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{session_id}/plan", response_model=Session)
async def plan_session(child_id: UUID, session_id: UUID, service: SessionSvc) -> Session:
    try:
        return await service.plan(child_id, session_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{session_id}/schedule", response_model=Session)
async def schedule_session(
    child_id: UUID,
    session_id: UUID,
    slot: SlotInput,
    service: SessionSvc,
) -> Session:
    """Give a PLANNED or SKIPPED session a slot after conflict and capacity checks."""
    try:
        return await service.schedule(child_id, session_id, slot)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{session_id}/reschedule", response_model=Session)
async def reschedule_session(
    child_id: UUID,
    session_id: UUID,
    slot: SlotInput,
    service: SessionSvc,
) -> Session:
    try:
        return await service.reschedule(child_id, session_id, slot)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{session_id}/unschedule", response_model=Session)
async def unschedule_session(child_id: UUID, session_id: UUID, service: SessionSvc) -> Session:
    try:
        return await service.unschedule(child_id, session_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{session_id}/complete", response_model=Session)
async def complete_session(
    child_id: UUID,
    session_id: UUID,
    service: SessionSvc,
    payload: Optional[CompleteInput] = None,
) -> Session:
    try:
        return await service.complete(child_id, session_id, payload)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{session_id}/skip", response_model=Session)
async def skip_session(
    child_id: UUID,
    session_id: UUID,
    payload: SkipInput,
    service: SessionSvc,
) -> Session:
    """Skip a scheduled session and queue it for catch-up."""
    try:
        return await service.skip(child_id, session_id, payload)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{session_id}/transition", response_model=Session)
async def transition_session(
    child_id: UUID,
    session_id: UUID,
    payload: TransitionRequest,
    service: SessionSvc,
) -> Session:
    try:
        return await service.transition(child_id, session_id, payload)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    child_id: UUID,
    session_id: UUID,
    service: SessionSvc,
    confirm: bool = Query(False, description="Must be true to delete"),
):
    try:
        await service.delete(child_id, session_id, confirm=confirm)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc
