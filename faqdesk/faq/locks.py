from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class EntryLockPool:
    """One lock per FAQ entry, kept only while some task holds or waits on it.

    Entry ids come from callers, so a lock is dropped as soon as its last user
    leaves; unknown ids never accumulate.
    """

    __slots__ = ("_locks", "_users")

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, entry_id: str) -> AsyncIterator[None]:
        # Bookkeeping never awaits, so it is atomic on the event loop.
        lock = self._locks.get(entry_id)
        if lock is None:
            lock = self._locks[entry_id] = asyncio.Lock()
        self._users[entry_id] = self._users.get(entry_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[entry_id] - 1
            if remaining:
                self._users[entry_id] = remaining
            else:
                del self._users[entry_id]
                del self._locks[entry_id]

    def __len__(self) -> int:
        return len(self._locks)


__all__ = ["EntryLockPool"]
