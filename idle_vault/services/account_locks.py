"""Account Locks — per-account asyncio locks for mutating operations.

Invariants:
    - At most one mutating operation per account id runs at a time in this process
    - Multi-account operations acquire locks in sorted id order (no deadlock)
    - Locks for idle accounts are dropped once no task holds or waits on them

Design Decisions:
    - Per-key locks instead of one process-wide lock: claims on different
      accounts never wait on each other
    - Cross-process safety comes from the version check in the repository;
      these locks only remove pointless in-process conflicts
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class AccountLocks:
    """Registry of per-account locks with reference counting."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def _acquire_ref(self, account_id: str) -> asyncio.Lock:
        lock = self._locks.setdefault(account_id, asyncio.Lock())
        self._holders[account_id] = self._holders.get(account_id, 0) + 1
        return lock

    def _release_ref(self, account_id: str) -> None:
        self._holders[account_id] -= 1
        if self._holders[account_id] == 0:
            del self._holders[account_id]
            del self._locks[account_id]

    @asynccontextmanager
    async def hold(self, *account_ids: str) -> AsyncIterator[None]:
        """Hold the locks of every given account for the duration of the block."""
        ordered = sorted(set(account_ids))
        acquired: list[str] = []
        try:
            for account_id in ordered:
                lock = self._acquire_ref(account_id)
                try:
                    await lock.acquire()
                except BaseException:
                    self._release_ref(account_id)
                    raise
                acquired.append(account_id)
            yield
        finally:
            for account_id in reversed(acquired):
                self._locks[account_id].release()
                self._release_ref(account_id)

    def is_locked(self, account_id: str) -> bool:
        lock = self._locks.get(account_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registry shared by all request-scoped services
account_locks = AccountLocks()
