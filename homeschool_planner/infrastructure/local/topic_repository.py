"""
SQLite implementation of topic repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select

from homeschool_planner.infrastructure.local.database import TopicORM, get_session_factory
from homeschool_planner.interfaces.topic_repository import ITopicRepository
from homeschool_planner.models.topic import Topic, TopicCreate
from homeschool_planner.utils.datetime_utils import ensure_utc


class SqliteTopicRepository(ITopicRepository):
    """SQLite implementation of topic repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TopicORM) -> Topic:
        return Topic(
            id=UUID(orm.id),
            name=orm.name,
            estimated_minutes=orm.estimated_minutes,
            subject=orm.subject,
            created_at=ensure_utc(orm.created_at),
        )

    async def create(self, data: TopicCreate) -> Topic:
        async with self._session_factory() as session:
            orm = TopicORM(
                id=str(uuid4()),
                name=data.name,
                estimated_minutes=data.estimated_minutes,
                subject=data.subject,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, topic_id: UUID) -> Optional[Topic]:
        async with self._session_factory() as session:
            result = await session.execute(select(TopicORM).where(TopicORM.id == str(topic_id)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_many(self, topic_ids: list[UUID]) -> dict[UUID, Topic]:
        if not topic_ids:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(
                select(TopicORM).where(TopicORM.id.in_([str(topic_id) for topic_id in topic_ids]))
            )
            topics = [self._orm_to_model(orm) for orm in result.scalars().all()]
            return {topic.id: topic for topic in topics}
