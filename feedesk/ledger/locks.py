import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class StudentLocks:
    """
    Serializes ledger writes per admission number within this process.

    A student's lock is dropped as soon as nobody holds or waits for it, so the registry
    only ever contains students with a write in progress.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, admission_number: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(admission_number, asyncio.Lock())
        self._users[admission_number] = self._users.get(admission_number, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[admission_number] -= 1
            if not self._users[admission_number]:
                del self._users[admission_number]
                del self._locks[admission_number]


student_locks = StudentLocks()


def get_student_locks() -> StudentLocks:
    return student_locks
