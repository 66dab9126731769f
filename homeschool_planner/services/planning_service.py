"""
Planning queries: weekly capacity, quality review and the catch-up queue.

All queries take an explicit reference date.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from homeschool_planner.core.exceptions import ValidationError
from homeschool_planner.interfaces.catch_up_repository import ICatchUpRepository
from homeschool_planner.interfaces.child_repository import IChildRepository
from homeschool_planner.interfaces.imported_event_repository import IImportedEventRepository
from homeschool_planner.interfaces.session_repository import ISessionRepository
from homeschool_planner.interfaces.time_block_repository import ITimeBlockRepository
from homeschool_planner.interfaces.topic_repository import ITopicRepository
from homeschool_planner.models.catch_up import CatchUpEntry
from homeschool_planner.models.schedule import QualityReport, WeekCapacity
from homeschool_planner.services.capacity_calculator import week_capacity
from homeschool_planner.services.child_snapshot import ChildSnapshotLoader
from homeschool_planner.services.quality_advisor import QualityAdvisor


class PlanningService:
    def __init__(
        self,
        child_repo: IChildRepository,
        session_repo: ISessionRepository,
        time_block_repo: ITimeBlockRepository,
        event_repo: IImportedEventRepository,
        topic_repo: ITopicRepository,
        catch_up_repo: ICatchUpRepository,
        advisor: Optional[QualityAdvisor] = None,
    ):
        self.topic_repo = topic_repo
        self.catch_up_repo = catch_up_repo
        self.advisor = advisor or QualityAdvisor()
        self.snapshots = ChildSnapshotLoader(child_repo, session_repo, time_block_repo, event_repo)

    async def capacity(self, child_id: UUID, week_of: date) -> WeekCapacity:
        snapshot = await self.snapshots.load(child_id)
        return week_capacity(snapshot.child, week_of, snapshot.index, snapshot.sessions)

    async def quality(self, child_id: UUID, week_of: date) -> QualityReport:
        snapshot = await self.snapshots.load(child_id)
        topics = await self.topic_repo.get_many(list({s.topic_id for s in snapshot.sessions}))
        return self.advisor.assess_week(snapshot.child, week_of, snapshot.index, snapshot.sessions, topics)

    async def list_catch_up(self, child_id: UUID) -> list[CatchUpEntry]:
        await self.snapshots.load_child(child_id)
        return await self.catch_up_repo.list(child_id)

    async def update_catch_up_priority(self, child_id: UUID, entry_id: UUID, priority: int) -> CatchUpEntry:
        if priority < 1 or priority > 5:
            raise ValidationError("priority must be between 1 and 5", details={"field": "priority"})
        return await self.catch_up_repo.update_priority(child_id, entry_id, priority)
