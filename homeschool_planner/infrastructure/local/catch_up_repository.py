"""
SQLite implementation of catch-up repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import and_, select

from homeschool_planner.core.exceptions import NotFoundError
from homeschool_planner.infrastructure.local.database import CatchUpEntryORM, get_session_factory
from homeschool_planner.infrastructure.local.session_repository import parse_time
from homeschool_planner.interfaces.catch_up_repository import ICatchUpRepository
from homeschool_planner.models.catch_up import CatchUpEntry
from homeschool_planner.utils.datetime_utils import ensure_utc


class SqliteCatchUpRepository(ICatchUpRepository):
    """SQLite implementation of catch-up repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: CatchUpEntryORM) -> CatchUpEntry:
        return CatchUpEntry(
            id=UUID(orm.id),
            session_id=UUID(orm.session_id),
            child_id=UUID(orm.child_id),
            topic_id=UUID(orm.topic_id),
            estimated_minutes=orm.estimated_minutes,
            skip_date=orm.skip_date,
            skip_reason=orm.skip_reason,
            priority=orm.priority,
            original_day_of_week=orm.original_day_of_week,
            original_start_time=parse_time(orm.original_start_time),
            original_end_time=parse_time(orm.original_end_time),
            created_at=ensure_utc(orm.created_at),
        )

    async def list(self, child_id: UUID) -> list[CatchUpEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CatchUpEntryORM)
                .where(CatchUpEntryORM.child_id == str(child_id))
                .order_by(CatchUpEntryORM.skip_date, CatchUpEntryORM.created_at, CatchUpEntryORM.id)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def get(self, child_id: UUID, entry_id: UUID) -> Optional[CatchUpEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CatchUpEntryORM).where(
                    and_(CatchUpEntryORM.id == str(entry_id), CatchUpEntryORM.child_id == str(child_id))
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def update_priority(self, child_id: UUID, entry_id: UUID, priority: int) -> CatchUpEntry:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CatchUpEntryORM).where(
                    and_(CatchUpEntryORM.id == str(entry_id), CatchUpEntryORM.child_id == str(child_id))
                )
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"CatchUpEntry {entry_id} not found")
            orm.priority = priority
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
