"""
SQLite implementation of time block repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from homeschool_planner.core.exceptions import NotFoundError
from homeschool_planner.infrastructure.local.database import TimeBlockORM, get_session_factory, utcnow
from homeschool_planner.infrastructure.local.session_repository import format_time, parse_time
from homeschool_planner.interfaces.time_block_repository import ITimeBlockRepository
from homeschool_planner.models.time_block import TimeBlock, TimeBlockCreate, TimeBlockUpdate
from homeschool_planner.utils.datetime_utils import ensure_utc


class SqliteTimeBlockRepository(ITimeBlockRepository):
    """SQLite implementation of time block repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TimeBlockORM) -> TimeBlock:
        return TimeBlock(
            id=UUID(orm.id),
            child_id=UUID(orm.child_id),
            day_of_week=orm.day_of_week,
            start_time=parse_time(orm.start_time),
            end_time=parse_time(orm.end_time),
            label=orm.label,
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def _get_orm(self, session, child_id: UUID, block_id: UUID) -> Optional[TimeBlockORM]:
        result = await session.execute(
            select(TimeBlockORM).where(
                and_(TimeBlockORM.id == str(block_id), TimeBlockORM.child_id == str(child_id))
            )
        )
        return result.scalar_one_or_none()

    async def create(self, child_id: UUID, data: TimeBlockCreate) -> TimeBlock:
        async with self._session_factory() as session:
            orm = TimeBlockORM(
                id=str(uuid4()),
                child_id=str(child_id),
                day_of_week=data.day_of_week,
                start_time=format_time(data.start_time),
                end_time=format_time(data.end_time),
                label=data.label,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, child_id: UUID, block_id: UUID) -> Optional[TimeBlock]:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, block_id)
            return self._orm_to_model(orm) if orm else None

    async def list(self, child_id: UUID, day_of_week: Optional[int] = None) -> list[TimeBlock]:
        async with self._session_factory() as session:
            conditions = [TimeBlockORM.child_id == str(child_id)]
            if day_of_week is not None:
                conditions.append(TimeBlockORM.day_of_week == day_of_week)
            query = select(TimeBlockORM).where(and_(*conditions)).order_by(
                TimeBlockORM.day_of_week, TimeBlockORM.start_time
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update(self, child_id: UUID, block_id: UUID, update: TimeBlockUpdate) -> TimeBlock:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, block_id)
            if not orm:
                raise NotFoundError(f"TimeBlock {block_id} not found")

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if value is None:
                    continue
                if field in ("start_time", "end_time"):
                    value = format_time(value)
                setattr(orm, field, value)

            orm.updated_at = utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, child_id: UUID, block_id: UUID) -> bool:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, block_id)
            if not orm:
                return False
            await session.delete(orm)
            await session.commit()
            return True
