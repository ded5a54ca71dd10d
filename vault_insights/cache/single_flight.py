"""Single-flight cache: at most one in-flight computation per key."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from ..errors import CacheLockTimeoutError, CacheQueueFullError
from ..interfaces.cache_store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    pending: int = 0


class AsyncCache:
    """Wrap expensive async producers behind a TTL store.

    Concurrent callers for the same key queue on a per-key lock and re-check
    the store once they hold it, so only the first one runs the producer.
    Only works because the store is local to this process.
    """

    def __init__(
        self,
        store: CacheStore,
        lock_timeout: float = 10.0,
        max_pending: int = 100_000,
    ) -> None:
        self._store = store
        self._lock_timeout = lock_timeout
        self._max_pending = max_pending
        self._locks: dict[str, _KeyLock] = {}

    def get(self, key: str) -> object | None:
        return self._store.get(key)

    def set(self, key: str, value: T, ttl_ms: int) -> T:
        self._store.set(key, value, ttl_ms)
        return value

    def pending(self, key: str) -> int:
        """Number of callers currently queued (not holding) on ``key``."""
        entry = self._locks.get(key)
        return entry.pending if entry else 0

    async def wrap(
        self, key: str, ttl_ms: int, producer: Callable[[], Awaitable[T]]
    ) -> T:
        """Return the cached value for ``key`` or compute it exactly once.

        Raises:
            CacheQueueFullError: ``max_pending`` callers already wait on ``key``.
            CacheLockTimeoutError: the lock was not acquired in ``lock_timeout``.
        """
        cached = self._store.get(key)
        if cached is not None:
            logger.debug("wrap: cache hit for %s", key)
            return cached

        entry = self._locks.setdefault(key, _KeyLock())
        if entry.pending >= self._max_pending:
            raise CacheQueueFullError(key, self._max_pending)

        logger.debug("wrap: acquiring lock for %s (ttl %dms)", key, ttl_ms)
        entry.pending += 1
        try:
            await asyncio.wait_for(entry.lock.acquire(), timeout=self._lock_timeout)
        except asyncio.TimeoutError:
            raise CacheLockTimeoutError(key, self._lock_timeout) from None
        finally:
            entry.pending -= 1
            if entry.pending == 0 and not entry.lock.locked():
                self._locks.pop(key, None)

        try:
            cached = self._store.get(key)
            if cached is not None:
                logger.debug("wrap: filled while waiting for %s", key)
                return cached

            logger.debug("wrap: cache miss for %s, computing value", key)
            value = await producer()
            if value is not None:
                self._store.set(key, value, ttl_ms)
            else:
                logger.debug("wrap: producer returned None for %s, not caching", key)
            return value
        finally:
            entry.lock.release()
            if entry.pending == 0:
                self._locks.pop(key, None)
