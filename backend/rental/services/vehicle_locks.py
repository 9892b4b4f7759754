"""
Per-vehicle mutual exclusion for the reservation coordinator.

Writes for one vehicle run one at a time; writes for different vehicles never
wait on each other. Locks are created on first use and dropped again when no
coroutine holds or waits on them, so the registry stays as small as the set
of vehicles currently being written to.
"""

import asyncio
from contextlib import asynccontextmanager


class VehicleLocks:
    def __init__(self):
        self._locks: dict = {}
        self._waiters: dict = {}

    @asynccontextmanager
    async def hold(self, vehicle_id):
        lock = self._locks.get(vehicle_id)
        if lock is None:
            lock = self._locks[vehicle_id] = asyncio.Lock()
        self._waiters[vehicle_id] = self._waiters.get(vehicle_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[vehicle_id] -= 1
            if self._waiters[vehicle_id] == 0:
                del self._waiters[vehicle_id]
                del self._locks[vehicle_id]

    def locked(self, vehicle_id) -> bool:
        lock = self._locks.get(vehicle_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
