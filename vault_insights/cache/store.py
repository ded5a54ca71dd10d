"""In-process TTL store with lazy and periodic eviction."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheRecord:
    value: Any
    expiry: float

    def expired(self, now: float) -> bool:
        return now > self.expiry


class TtlStore:
    """Key/value store where every entry expires after its own TTL.

    Expired entries are dropped lazily on ``get`` and by ``sweep``, which
    ``start()`` schedules every ``check_period`` seconds. Process-local only:
    several workers or nodes each hold their own copy.
    """

    def __init__(
        self,
        default_ttl: float = 60 * 60,
        check_period: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._check_period = check_period
        self._clock = clock
        self._records: dict[str, CacheRecord] = {}
        self._sweeper: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Any | None:
        record = self._records.get(key)
        if record is None:
            return None
        if record.expired(self._clock()):
            del self._records[key]
            return None
        return record.value

    def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        ttl = self._default_ttl if ttl_ms is None else ttl_ms / 1000
        self._records[key] = CacheRecord(value=value, expiry=self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def clear(self) -> None:
        self._records.clear()

    def sweep(self) -> int:
        """Drop every expired entry, returning how many were removed."""
        now = self._clock()
        expired = [key for key, record in self._records.items() if record.expired(now)]
        for key in expired:
            del self._records[key]
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Periodic sweep
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._run_sweeper())

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self._records.clear()

    async def _run_sweeper(self) -> None:
        while True:
            await asyncio.sleep(self._check_period)
            self.sweep()
