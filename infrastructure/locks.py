"""Per-room mutual exclusion for booking writes"""
import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, DefaultDict


class RoomLockRegistry:
    """asyncio locks keyed by room number

    Holding a room's lock serializes the availability check and the ledger
    write of every booking mutation on that room within this process. The
    ledger's own overlap constraint covers writers outside the process.
    """

    def __init__(self):
        self._locks: DefaultDict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock_for(self, room_number: str) -> asyncio.Lock:
        return self._locks[room_number]

    @asynccontextmanager
    async def hold(self, *room_numbers: str) -> AsyncIterator[None]:
        """Acquire the locks of several rooms in a fixed order"""
        acquired = []
        try:
            for number in sorted(set(room_numbers)):
                lock = self.lock_for(number)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()