"""Per-document locking for read-modify-write cycles."""

import asyncio
import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable

from mdkanban.errors import LockTimeout

logger = logging.getLogger(__name__)


def canonical_key(key: str | Path) -> str:
    """Resolve a storage path so different spellings share one lock."""
    return str(Path(key).resolve())


class DocumentLocks:
    """Table of asyncio locks keyed by canonical document path.

    Work under the same key runs one at a time, in arrival order. Different
    keys never wait on each other. Entries are dropped when nobody holds or
    waits on them.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __contains__(self, key: str | Path) -> bool:
        return canonical_key(key) in self._locks

    def __len__(self) -> int:
        return len(self._locks)

    def locked(self, key: str | Path) -> bool:
        lock = self._locks.get(canonical_key(key))
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: str | Path, timeout: float | None = None):
        """Hold the lock for key. Raises LockTimeout if not acquired in time."""
        key = canonical_key(key)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                if timeout is None:
                    await lock.acquire()
                else:
                    await asyncio.wait_for(lock.acquire(), timeout)
            except asyncio.TimeoutError:
                logger.warning("Gave up waiting for %s after %ss", key, timeout)
                raise LockTimeout(key, timeout) from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    async def with_lock(
        self,
        key: str | Path,
        operation: Callable[[], Any | Awaitable[Any]],
        timeout: float | None = None,
    ) -> Any:
        """Run operation (sync or async) while holding the lock for key."""
        async with self.hold(key, timeout=timeout):
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            return result


default_locks = DocumentLocks()
