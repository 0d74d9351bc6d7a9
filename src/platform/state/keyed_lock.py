"""
In-process keyed lock

Serializes work per key (one seat, one txnRef) instead of per request, so
callers touching disjoint keys never wait on each other. Multi-key
acquisition is done in sorted order to rule out lock-order deadlocks, and
every wait is bounded.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import time

import anyio

from src.platform.exception.exceptions import LockTimeoutError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics


class KeyedLock:
    def __init__(self) -> None:
        self._locks: dict[str, anyio.Lock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, key: str) -> anyio.Lock:
        if key not in self._locks:
            self._locks[key] = anyio.Lock()
            self._users[key] = 0
        self._users[key] += 1
        return self._locks[key]

    def _checkin(self, key: str) -> None:
        self._users[key] -= 1
        if not self._users[key]:
            del self._users[key]
            del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *keys: str, timeout: float) -> AsyncIterator[None]:
        """
        Acquire every key or none within `timeout` seconds.

        Raises:
            LockTimeoutError: a key stayed busy past the timeout
        """
        ordered = sorted(set(keys))
        locks = [self._checkout(key) for key in ordered]
        acquired: list[anyio.Lock] = []
        started = time.perf_counter()
        try:
            try:
                with anyio.fail_after(timeout):
                    for lock in locks:
                        await lock.acquire()
                        acquired.append(lock)
            except TimeoutError:
                Logger.base.warning(f'⏳ [LOCK] Timed out after {timeout}s waiting for {ordered}')
                raise LockTimeoutError(
                    'Resource is busy, please try again'
                ) from None
            metrics.record_lock_wait(duration=time.perf_counter() - started)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._checkin(key)
