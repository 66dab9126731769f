"""
SQLite implementation of learning session repository.

Session rows and catch-up entries share one transaction so a skip never
exists without its entry and an entry never outlives its skip.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError

from homeschool_planner.core.exceptions import ConcurrencyConflictError, NotFoundError
from homeschool_planner.infrastructure.local.database import (
    CatchUpEntryORM,
    SessionORM,
    get_session_factory,
    utcnow,
)
from homeschool_planner.interfaces.session_repository import ISessionRepository
from homeschool_planner.models.catch_up import CatchUpEntry
from homeschool_planner.models.enums import CommitmentType, SessionStatus
from homeschool_planner.models.session import Session
from homeschool_planner.utils.datetime_utils import ensure_utc


def parse_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    return datetime.strptime(value, "%H:%M").time()


def format_time(value: Optional[time]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%H:%M")


def _to_db(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC."""
    value = ensure_utc(value)
    return value.replace(tzinfo=None) if value else None


class SqliteSessionRepository(ISessionRepository):
    """SQLite implementation of learning session repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: SessionORM) -> Session:
        return Session(
            id=UUID(orm.id),
            child_id=UUID(orm.child_id),
            topic_id=UUID(orm.topic_id),
            status=SessionStatus(orm.status),
            commitment_type=CommitmentType(orm.commitment_type) if orm.commitment_type else None,
            scheduled_day_of_week=orm.scheduled_day_of_week,
            scheduled_date=orm.scheduled_date,
            scheduled_start_time=parse_time(orm.scheduled_start_time),
            scheduled_end_time=parse_time(orm.scheduled_end_time),
            estimated_minutes=orm.estimated_minutes,
            notes=orm.notes,
            evidence_notes=orm.evidence_notes,
            completed_at=ensure_utc(orm.completed_at),
            skip_reason=orm.skip_reason,
            skip_date=orm.skip_date,
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    def _apply(self, orm: SessionORM, model: Session) -> None:
        orm.status = model.status.value
        orm.commitment_type = model.commitment_type.value if model.commitment_type else None
        orm.scheduled_day_of_week = model.scheduled_day_of_week
        orm.scheduled_date = model.scheduled_date
        orm.scheduled_start_time = format_time(model.scheduled_start_time)
        orm.scheduled_end_time = format_time(model.scheduled_end_time)
        orm.estimated_minutes = model.estimated_minutes
        orm.notes = model.notes
        orm.evidence_notes = model.evidence_notes
        orm.completed_at = _to_db(model.completed_at)
        orm.skip_reason = model.skip_reason
        orm.skip_date = model.skip_date

    async def _get_orm(self, session, child_id: UUID, session_id: UUID) -> Optional[SessionORM]:
        result = await session.execute(
            select(SessionORM).where(
                and_(SessionORM.id == str(session_id), SessionORM.child_id == str(child_id))
            )
        )
        return result.scalar_one_or_none()

    async def create(self, model: Session) -> Session:
        async with self._session_factory() as session:
            orm = SessionORM(
                id=str(model.id),
                child_id=str(model.child_id),
                topic_id=str(model.topic_id),
                created_at=_to_db(model.created_at),
                updated_at=_to_db(model.updated_at),
            )
            self._apply(orm, model)
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, child_id: UUID, session_id: UUID) -> Optional[Session]:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, session_id)
            return self._orm_to_model(orm) if orm else None

    async def list(
        self,
        child_id: UUID,
        status: Optional[SessionStatus] = None,
    ) -> list[Session]:
        async with self._session_factory() as session:
            conditions = [SessionORM.child_id == str(child_id)]
            if status is not None:
                conditions.append(SessionORM.status == status.value)
            query = select(SessionORM).where(and_(*conditions)).order_by(
                SessionORM.created_at, SessionORM.id
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def save(self, model: Session) -> Session:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, model.child_id, model.id)
            if not orm:
                raise NotFoundError(f"Session {model.id} not found")
            self._apply(orm, model)
            orm.updated_at = utcnow()
            if model.status != SessionStatus.SKIPPED:
                await session.execute(
                    delete(CatchUpEntryORM).where(CatchUpEntryORM.session_id == str(model.id))
                )
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def skip(self, model: Session, entry: CatchUpEntry) -> Session:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, model.child_id, model.id)
            if not orm:
                raise NotFoundError(f"Session {model.id} not found")
            self._apply(orm, model)
            orm.updated_at = utcnow()
            session.add(
                CatchUpEntryORM(
                    id=str(entry.id),
                    session_id=str(entry.session_id),
                    child_id=str(entry.child_id),
                    topic_id=str(entry.topic_id),
                    estimated_minutes=entry.estimated_minutes,
                    skip_date=entry.skip_date,
                    skip_reason=entry.skip_reason,
                    priority=entry.priority,
                    original_day_of_week=entry.original_day_of_week,
                    original_start_time=format_time(entry.original_start_time),
                    original_end_time=format_time(entry.original_end_time),
                    created_at=_to_db(entry.created_at),
                )
            )
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConcurrencyConflictError(
                    f"Session {model.id} already has a catch-up entry",
                    details={"session_id": str(model.id)},
                ) from exc
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, child_id: UUID, session_id: UUID) -> bool:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, child_id, session_id)
            if not orm:
                return False
            await session.execute(
                delete(CatchUpEntryORM).where(CatchUpEntryORM.session_id == str(session_id))
            )
            await session.delete(orm)
            await session.commit()
            return True
