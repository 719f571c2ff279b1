# leaseiq/service_layer/locks.py
from __future__ import annotations

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class KeyedLocks:
    """
    asyncio locks keyed by arbitrary hashables. `hold(*keys)` takes all of them
    in sorted order, so two callers sharing any key never interleave and never
    deadlock.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._users: dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, *keys: Hashable) -> AsyncIterator[None]:
        names = sorted({repr(k) for k in keys})
        acquired: list[str] = []
        for n in names:
            self._users[n] += 1
        try:
            for n in names:
                await self._locks[n].acquire()
                acquired.append(n)
            yield
        finally:
            for n in reversed(acquired):
                self._locks[n].release()
            for n in names:
                self._users[n] -= 1
                if self._users[n] == 0:
                    del self._users[n]
                    self._locks.pop(n, None)

    def __len__(self) -> int:
        return len(self._locks)
