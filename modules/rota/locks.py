import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Iterable


class EmployeeLocks:
    """
    Per-employee asyncio locks for check-then-write sequences.

    Locks are taken in sorted id order so two writers touching overlapping
    employee sets cannot deadlock. This serialises writers inside one
    process; across processes the shift version check still applies.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, employee_id: str) -> asyncio.Lock:
        lock = self._locks.get(employee_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[employee_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, employee_ids: Iterable[str]):
        ordered = sorted({str(e) for e in employee_ids})
        acquired = []
        try:
            for employee_id in ordered:
                lock = self._lock_for(employee_id)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


employee_locks = EmployeeLocks()
