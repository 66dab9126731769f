"""
Calendar API endpoints.

Weekly time blocks and imported calendar events for a child, mounted under
/children/{child_id}.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from homeschool_planner.api.deps import CalendarSvc
from homeschool_planner.api.errors import to_http_exception
from homeschool_planner.core.exceptions import PlannerError
from homeschool_planner.models.imported_event import (
    ExpansionResult,
    ImportedEvent,
    ImportedEventCreate,
    ImportedEventUpdate,
)
from homeschool_planner.models.time_block import TimeBlock, TimeBlockCreate, TimeBlockUpdate

router = APIRouter()


# ===========================================
# Time blocks
# ===========================================


@router.get("/time-blocks", response_model=list[TimeBlock])
async def list_time_blocks(
    child_id: UUID,
    service: CalendarSvc,
    day_of_week: Optional[int] = Query(None, ge=1, le=7),
) -> list[TimeBlock]:
    try:
        return await service.list_time_blocks(child_id, day_of_week=day_of_week)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/time-blocks", response_model=TimeBlock, status_code=status.HTTP_201_CREATED)
async def create_time_block(child_id: UUID, payload: TimeBlockCreate, service: CalendarSvc) -> TimeBlock:
    """Add a weekly fixed commitment. Blocks of one child may not overlap."""
    try:
        return await service.create_time_block(child_id, payload)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/time-blocks/{block_id}", response_model=TimeBlock)
async def update_time_block(
    child_id: UUID,
    block_id: UUID,
    update: TimeBlockUpdate,
    service: CalendarSvc,
) -> TimeBlock:
    try:
        return await service.update_time_block(child_id, block_id, update)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/time-blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_block(child_id: UUID, block_id: UUID, service: CalendarSvc):
    try:
        await service.delete_time_block(child_id, block_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


# ===========================================
# Imported events
# ===========================================


@router.get("/imported-events", response_model=list[ImportedEvent])
async def list_imported_events(child_id: UUID, service: CalendarSvc) -> list[ImportedEvent]:
    try:
        return await service.list_events(child_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.post("/imported-events", response_model=ImportedEvent, status_code=status.HTTP_201_CREATED)
async def create_imported_event(
    child_id: UUID,
    payload: ImportedEventCreate,
    service: CalendarSvc,
) -> ImportedEvent:
    """Store an external event. A malformed recurrence is kept and reported on the event."""
    try:
        return await service.create_event(child_id, payload)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/imported-events/{event_id}", response_model=ImportedEvent)
async def get_imported_event(child_id: UUID, event_id: UUID, service: CalendarSvc) -> ImportedEvent:
    try:
        return await service.get_event(child_id, event_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/imported-events/{event_id}", response_model=ImportedEvent)
async def update_imported_event(
    child_id: UUID,
    event_id: UUID,
    update: ImportedEventUpdate,
    service: CalendarSvc,
) -> ImportedEvent:
    try:
        return await service.update_event(child_id, event_id, update)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/imported-events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_imported_event(child_id: UUID, event_id: UUID, service: CalendarSvc):
    try:
        await service.delete_event(child_id, event_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/imported-events/{event_id}/occurrences", response_model=ExpansionResult)
async def list_event_occurrences(child_id: UUID, event_id: UUID, service: CalendarSvc) -> ExpansionResult:
    """Expanded occurrences in the child's display time zone."""
    try:
        return await service.preview_occurrences(child_id, event_id)
    except PlannerError as exc:
        raise to_http_exception(exc) from exc
