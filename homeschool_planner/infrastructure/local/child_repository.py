"""
SQLite implementation of child repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select

from homeschool_planner.core.exceptions import NotFoundError
from homeschool_planner.infrastructure.local.database import ChildORM, get_session_factory, utcnow
from homeschool_planner.interfaces.child_repository import IChildRepository
from homeschool_planner.models.child import Child, ChildCreate, ChildUpdate
from homeschool_planner.utils.datetime_utils import ensure_utc


class SqliteChildRepository(IChildRepository):
    """SQLite implementation of child repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ChildORM) -> Child:
        return Child(
            id=UUID(orm.id),
            name=orm.name,
            weekly_budget_minutes=orm.weekly_budget_minutes,
            per_day_budget_minutes={int(k): v for k, v in (orm.per_day_budget_minutes or {}).items()},
            timezone=orm.timezone,
            max_sessions_per_day=orm.max_sessions_per_day,
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def create(self, data: ChildCreate) -> Child:
        async with self._session_factory() as session:
            orm = ChildORM(
                id=str(uuid4()),
                name=data.name,
                weekly_budget_minutes=data.weekly_budget_minutes,
                per_day_budget_minutes={str(k): v for k, v in data.per_day_budget_minutes.items()},
                timezone=data.timezone,
                max_sessions_per_day=data.max_sessions_per_day,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, child_id: UUID) -> Optional[Child]:
        async with self._session_factory() as session:
            result = await session.execute(select(ChildORM).where(ChildORM.id == str(child_id)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list(self, limit: int = 100, offset: int = 0) -> list[Child]:
        async with self._session_factory() as session:
            query = select(ChildORM).order_by(ChildORM.created_at, ChildORM.id).limit(limit).offset(offset)
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update(self, child_id: UUID, update: ChildUpdate) -> Child:
        async with self._session_factory() as session:
            result = await session.execute(select(ChildORM).where(ChildORM.id == str(child_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Child {child_id} not found")

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "per_day_budget_minutes":
                    value = {str(k): v for k, v in (value or {}).items()}
                elif value is None and field != "max_sessions_per_day":
                    continue
                setattr(orm, field, value)

            orm.updated_at = utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
