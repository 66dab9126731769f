"""
Calendar service.

Manages a child's fixed commitments (weekly TimeBlocks and imported events)
and keeps the cached commitment index in step: every write invalidates it.
Imported events are checked on write and the reason a rule degraded is
stored on the event.
"""

from __future__ import annotations

from datetime import date, time
from typing import Optional
from uuid import UUID

from homeschool_planner.core.exceptions import ConflictError, NotFoundError, ValidationError
from homeschool_planner.core.logger import setup_logger
from homeschool_planner.interfaces.child_repository import IChildRepository
from homeschool_planner.interfaces.imported_event_repository import IImportedEventRepository
from homeschool_planner.interfaces.session_repository import ISessionRepository
from homeschool_planner.interfaces.time_block_repository import ITimeBlockRepository
from homeschool_planner.models.imported_event import (
    ExpansionResult,
    ImportedEvent,
    ImportedEventCreate,
    ImportedEventUpdate,
)
from homeschool_planner.models.schedule import CommitmentInterval, DayCommitments
from homeschool_planner.models.time_block import TimeBlock, TimeBlockCreate, TimeBlockUpdate
from homeschool_planner.services.child_locks import ChildLockRegistry, child_locks
from homeschool_planner.services.child_snapshot import ChildSnapshotLoader
from homeschool_planner.services.commitment_index import CommitmentIndexCache, commitment_index_cache
from homeschool_planner.services.recurrence_expander import RecurrenceExpander
from homeschool_planner.utils.datetime_utils import (
    is_known_timezone,
    minutes_to_time,
    time_to_minutes,
)
from homeschool_planner.utils.intervals import overlaps

logger = setup_logger(__name__)


class CalendarService:
    """Service for time blocks and imported events."""

    def __init__(
        self,
        child_repo: IChildRepository,
        time_block_repo: ITimeBlockRepository,
        event_repo: IImportedEventRepository,
        session_repo: ISessionRepository,
        cache: Optional[CommitmentIndexCache] = None,
        expander: Optional[RecurrenceExpander] = None,
        locks: Optional[ChildLockRegistry] = None,
    ):
        self.time_block_repo = time_block_repo
        self.event_repo = event_repo
        self.cache = cache or commitment_index_cache
        self.expander = expander or RecurrenceExpander()
        self.locks = locks or child_locks
        self.snapshots = ChildSnapshotLoader(
            child_repo, session_repo, time_block_repo, event_repo, cache=self.cache, expander=self.expander
        )

    # ===========================================
    # Time blocks
    # ===========================================

    async def list_time_blocks(self, child_id: UUID, day_of_week: Optional[int] = None) -> list[TimeBlock]:
        await self.snapshots.load_child(child_id)
        return await self.time_block_repo.list(child_id, day_of_week=day_of_week)

    async def create_time_block(self, child_id: UUID, data: TimeBlockCreate) -> TimeBlock:
        await self.snapshots.load_child(child_id)
        async with self.locks.hold(child_id):
            await self._check_block_overlap(child_id, data.day_of_week, data.start_time, data.end_time)
            block = await self.time_block_repo.create(child_id, data)
            self.cache.invalidate(child_id)
        logger.info(f"Created time block {block.id} '{block.label}' for child {child_id}")
        return block

    async def update_time_block(self, child_id: UUID, block_id: UUID, update: TimeBlockUpdate) -> TimeBlock:
        async with self.locks.hold(child_id):
            current = await self.time_block_repo.get(child_id, block_id)
            if not current:
                raise NotFoundError(f"TimeBlock {block_id} not found")
            day_of_week = update.day_of_week or current.day_of_week
            start_time = update.start_time or current.start_time
            end_time = update.end_time or current.end_time
            if end_time <= start_time:
                raise ValidationError("end_time must be after start_time", details={"field": "end_time"})
            await self._check_block_overlap(child_id, day_of_week, start_time, end_time, exclude_id=block_id)
            block = await self.time_block_repo.update(child_id, block_id, update)
            self.cache.invalidate(child_id)
        return block

    async def delete_time_block(self, child_id: UUID, block_id: UUID) -> None:
        async with self.locks.hold(child_id):
            deleted = await self.time_block_repo.delete(child_id, block_id)
            if not deleted:
                raise NotFoundError(f"TimeBlock {block_id} not found")
            self.cache.invalidate(child_id)

    async def _check_block_overlap(
        self,
        child_id: UUID,
        day_of_week: int,
        start_time: time,
        end_time: time,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time)
        for block in await self.time_block_repo.list(child_id, day_of_week=day_of_week):
            if block.id == exclude_id:
                continue
            if overlaps(start, end, time_to_minutes(block.start_time), time_to_minutes(block.end_time)):
                raise ConflictError(
                    f"Time block overlaps existing block '{block.label}'",
                    entity_type="time_block",
                    entity_id=str(block.id),
                    label=block.label,
                )

    # ===========================================
    # Imported events
    # ===========================================

    async def list_events(self, child_id: UUID) -> list[ImportedEvent]:
        await self.snapshots.load_child(child_id)
        return await self.event_repo.list(child_id)

    async def get_event(self, child_id: UUID, event_id: UUID) -> ImportedEvent:
        event = await self.event_repo.get(child_id, event_id)
        if not event:
            raise NotFoundError(f"ImportedEvent {event_id} not found")
        return event

    async def create_event(self, child_id: UUID, data: ImportedEventCreate) -> ImportedEvent:
        await self.snapshots.load_child(child_id)
        if not is_known_timezone(data.timezone):
            logger.warning(f"Imported event for child {child_id} uses unknown time zone {data.timezone!r}")
        async with self.locks.hold(child_id):
            event = await self.event_repo.create(child_id, data)
            event = await self._record_recurrence_error(event)
            self.cache.invalidate(child_id)
        return event

    async def update_event(self, child_id: UUID, event_id: UUID, update: ImportedEventUpdate) -> ImportedEvent:
        async with self.locks.hold(child_id):
            event = await self.event_repo.update(child_id, event_id, update)
            event = await self._record_recurrence_error(event)
            self.cache.invalidate(child_id)
        return event

    async def delete_event(self, child_id: UUID, event_id: UUID) -> None:
        async with self.locks.hold(child_id):
            deleted = await self.event_repo.delete(child_id, event_id)
            if not deleted:
                raise NotFoundError(f"ImportedEvent {event_id} not found")
            self.cache.invalidate(child_id)

    async def preview_occurrences(self, child_id: UUID, event_id: UUID) -> ExpansionResult:
        child = await self.snapshots.load_child(child_id)
        event = await self.get_event(child_id, event_id)
        return self.expander.expand(event, child.timezone)

    async def _record_recurrence_error(self, event: ImportedEvent) -> ImportedEvent:
        error = self.expander.check(event)
        message = error.message if error else None
        if message != event.recurrence_error:
            await self.event_repo.set_recurrence_error(event.child_id, event.id, message)
            event = event.model_copy(update={"recurrence_error": message})
        if error:
            logger.warning(f"Imported event {event.id} has a malformed recurrence: {message}")
        return event

    # ===========================================
    # Index queries
    # ===========================================

    async def commitments_for(
        self,
        child_id: UUID,
        day_of_week: Optional[int] = None,
        on_date: Optional[date] = None,
    ) -> DayCommitments:
        """Entries and merged busy minutes for a weekday or an absolute date."""
        if day_of_week is None and on_date is None:
            raise ValidationError("day_of_week or on_date is required", details={"field": "day_of_week"})
        if on_date is not None:
            if day_of_week is not None and day_of_week != on_date.isoweekday():
                raise ValidationError("on_date does not fall on day_of_week", details={"field": "on_date"})
            day_of_week = on_date.isoweekday()
        if day_of_week < 1 or day_of_week > 7:
            raise ValidationError("day_of_week must be between 1 and 7", details={"field": "day_of_week"})

        child = await self.snapshots.load_child(child_id)
        index = await self.snapshots.load_index(child)
        entries = [
            CommitmentInterval(
                source=entry.source,
                source_id=entry.source_id,
                label=entry.label,
                start_time=minutes_to_time(entry.start_minutes),
                end_time=minutes_to_time(entry.end_minutes),
            )
            for entry in index.entries_for(day_of_week, on_date)
        ]
        return DayCommitments(
            day_of_week=day_of_week,
            on_date=on_date,
            entries=entries,
            busy_minutes=index.busy_minutes(day_of_week, on_date),
            warnings=list(index.warnings),
        )
