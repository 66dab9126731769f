"""
Consistent per-child view used by the planning services.

A snapshot bundles the child, all of its sessions and its fixed-commitment
index. The index is served from ``commitment_index_cache`` and rebuilt when
missing or built for a different display time zone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from homeschool_planner.core.exceptions import NotFoundError
from homeschool_planner.interfaces.child_repository import IChildRepository
from homeschool_planner.interfaces.imported_event_repository import IImportedEventRepository
from homeschool_planner.interfaces.session_repository import ISessionRepository
from homeschool_planner.interfaces.time_block_repository import ITimeBlockRepository
from homeschool_planner.models.child import Child
from homeschool_planner.models.session import Session
from homeschool_planner.services.commitment_index import (
    CommitmentIndexCache,
    FixedCommitmentIndex,
    commitment_index_cache,
)
from homeschool_planner.services.recurrence_expander import RecurrenceExpander


@dataclass
class ChildSnapshot:
    child: Child
    sessions: list[Session]
    index: FixedCommitmentIndex

    def session(self, session_id: UUID) -> Optional[Session]:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None


class ChildSnapshotLoader:
    """Loads children, their sessions and their commitment index."""

    def __init__(
        self,
        child_repo: IChildRepository,
        session_repo: ISessionRepository,
        time_block_repo: ITimeBlockRepository,
        event_repo: IImportedEventRepository,
        cache: Optional[CommitmentIndexCache] = None,
        expander: Optional[RecurrenceExpander] = None,
    ):
        self.child_repo = child_repo
        self.session_repo = session_repo
        self.time_block_repo = time_block_repo
        self.event_repo = event_repo
        self.cache = cache or commitment_index_cache
        self.expander = expander or RecurrenceExpander()

    async def load_child(self, child_id: UUID) -> Child:
        child = await self.child_repo.get(child_id)
        if not child:
            raise NotFoundError(f"Child {child_id} not found")
        return child

    async def load_index(self, child: Child) -> FixedCommitmentIndex:
        cached = self.cache.get(child.id)
        if cached is not None and cached.display_timezone == child.timezone:
            return cached
        generation = self.cache.generation(child.id)
        blocks = await self.time_block_repo.list(child.id)
        events = await self.event_repo.list(child.id)
        index = FixedCommitmentIndex.build(
            blocks, events, child.timezone, expander=self.expander, child_id=child.id
        )
        self.cache.put(child.id, index, generation=generation)
        return index

    async def load(self, child_id: UUID) -> ChildSnapshot:
        child = await self.load_child(child_id)
        index = await self.load_index(child)
        sessions = await self.session_repo.list(child_id)
        return ChildSnapshot(child=child, sessions=sessions, index=index)
