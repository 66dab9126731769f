"""
In-process session event publisher.

Fans session-completed events out to subscriber queues, per child and to
wildcard subscribers that follow every child.
"""

import asyncio
from typing import Optional
from uuid import UUID

from homeschool_planner.interfaces.event_publisher import ISessionEventPublisher
from homeschool_planner.models.schedule import SessionCompletedEvent

ALL_CHILDREN = "*"


class InMemorySessionEventPublisher(ISessionEventPublisher):
    def __init__(self) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[SessionCompletedEvent]]] = {}

    def subscribe(self, child_id: Optional[UUID] = None) -> asyncio.Queue[SessionCompletedEvent]:
        key = str(child_id) if child_id else ALL_CHILDREN
        queue: asyncio.Queue[SessionCompletedEvent] = asyncio.Queue()
        self._subscribers.setdefault(key, set()).add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SessionCompletedEvent], child_id: Optional[UUID] = None) -> None:
        key = str(child_id) if child_id else ALL_CHILDREN
        queues = self._subscribers.get(key)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            self._subscribers.pop(key, None)

    async def publish_completed(self, event: SessionCompletedEvent) -> None:
        queues = list(self._subscribers.get(str(event.child_id), set()))
        queues.extend(self._subscribers.get(ALL_CHILDREN, set()))
        for queue in queues:
            queue.put_nowait(event)
