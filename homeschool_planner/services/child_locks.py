"""
Per-child write serialization.

Every check-then-act sequence that writes a child's sessions or calendar
runs while holding that child's lock. Reads do not lock.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID


class ChildLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}

    def _lock_for(self, child_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(child_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[child_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, child_id: UUID) -> AsyncIterator[None]:
        async with self._lock_for(child_id):
            yield

    def is_locked(self, child_id: UUID) -> bool:
        lock = self._locks.get(child_id)
        return bool(lock and lock.locked())


child_locks = ChildLockRegistry()
