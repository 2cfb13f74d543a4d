"""
Per-key critical sections.

Serializes writers of the same rate party key or ledger account inside one
worker process. Cross-process exclusion comes from the row locks taken by the
repositories (SELECT ... FOR UPDATE).
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Hashable


class KeyedLockRegistry:
    """
    Hands out one asyncio.Lock per key.

    Locks are dropped again once no coroutine holds or waits on them, so the
    registry does not grow with the number of accounts ever touched.
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_held(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()


# Shared registry for the whole application
key_locks = KeyedLockRegistry()
