"""
Topic API endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from homeschool_planner.api.deps import TopicRepo
from homeschool_planner.models.topic import Topic, TopicCreate

router = APIRouter()


@router.post("", response_model=Topic, status_code=status.HTTP_201_CREATED)
async def create_topic(payload: TopicCreate, repo: TopicRepo) -> Topic:
    return await repo.create(payload)


@router.get("/{topic_id}", response_model=Topic)
async def get_topic(topic_id: UUID, repo: TopicRepo) -> Topic:
    topic = await repo.get(topic_id)
    if not topic:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Topic {topic_id} not found",
        )
    return topic
