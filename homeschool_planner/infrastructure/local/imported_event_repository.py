"""
SQLite implementation of imported event repository.

DTSTART/DTEND are stored as ISO strings so an explicit UTC offset survives
the round trip.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from homeschool_planner.core.exceptions import NotFoundError
from homeschool_planner.infrastructure.local.database import (
    ImportedEventORM,
    get_session_factory,
    utcnow,
)
from homeschool_planner.interfaces.imported_event_repository import IImportedEventRepository
from homeschool_planner.models.imported_event import (
    ImportedEvent,
    ImportedEventCreate,
    ImportedEventUpdate,
)
from homeschool_planner.utils.datetime_utils import ensure_utc


def _format_dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SqliteImportedEventRepository(IImportedEventRepository):
    """SQLite implementation of imported event repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ImportedEventORM) -> ImportedEvent:
        return ImportedEvent(
            id=UUID(orm.id),
            child_id=UUID(orm.child_id),
            summary=orm.summary or "",
            location=orm.location,
            uid=orm.uid,
            dtstart=_parse_dt(orm.dtstart),
            dtend=_parse_dt(orm.dtend),
            frequency=orm.frequency,
            interval=orm.interval if orm.interval is not None else 1,
            count=orm.count,
            until=orm.until,
            timezone=orm.timezone,
            recurrence_error=orm.recurrence_error,
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def _get_orm(self, session, child_id: UUID, event_id: UUID) -> Optional[ImportedEventORM]:
        result = await session.execute(
            select(ImportedEventORM).where(
                and_(ImportedEventORM.id == str(event_id), ImportedEventORM.child_id == str(child_id))
            )
        )
        return result.scalar_one_or_none()

    async def create(self, child_id: UUID, data: ImportedEventCreate) -> ImportedEvent:
        async with self._session_factory() as session:
            orm = ImportedEventORM(
                id=str(uuid4()),
                child_id=str(child_id),
                summary=data.summary,
                location=data.location,
                uid=data.uid,
                dtstart=_format_dt(data.dtstart),
                dtend=_format_dt(data.dtend),
                frequency=data.frequency,
                interval=data.interval,
                count=data.count,
                until=data.until,
                timezone=data.timezone,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, child_id: UUID, event_id: UUID) -> Optional[ImportedEvent]:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, event_id)
            return self._orm_to_model(orm) if orm else None

    async def list(self, child_id: UUID) -> list[ImportedEvent]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ImportedEventORM)
                .where(ImportedEventORM.child_id == str(child_id))
                .order_by(ImportedEventORM.dtstart, ImportedEventORM.id)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update(self, child_id: UUID, event_id: UUID, update: ImportedEventUpdate) -> ImportedEvent:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, event_id)
            if not orm:
                raise NotFoundError(f"ImportedEvent {event_id} not found")

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if value is None and field in ("summary", "dtstart", "interval", "timezone"):
                    continue
                if field in ("dtstart", "dtend"):
                    value = _format_dt(value)
                setattr(orm, field, value)

            orm.updated_at = utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, child_id: UUID, event_id: UUID) -> bool:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, event_id)
            if not orm:
                return False
            await session.delete(orm)
            await session.commit()
            return True

    async def set_recurrence_error(
        self, child_id: UUID, event_id: UUID, error: Optional[str]
    ) -> None:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, event_id)
            if not orm:
                raise NotFoundError(f"ImportedEvent {event_id} not found")
            orm.recurrence_error = error
            await session.commit()
