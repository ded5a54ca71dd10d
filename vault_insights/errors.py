"""Shared exception hierarchy for vault insights."""
from __future__ import annotations

from typing import Any


class InsightsError(Exception):
    """Base exception for all vault insights errors."""


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class SourceError(InsightsError):
    """A single data source failed (transport, timeout, malformed payload)."""


class GraphQueryError(SourceError):
    """A subgraph query failed. The message never leaks the raw response."""

    def __init__(self, error: Any, source: Any = None) -> None:
        message = str(error) if error is not None and str(error) else "Unknown subgraph error"
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)
        self.source = source


# ---------------------------------------------------------------------------
# Fan-out (fatal for the request)
# ---------------------------------------------------------------------------


class FanOutError(InsightsError):
    """The batch as a whole failed; no partial results can be trusted."""


class NoSourcesError(FanOutError):
    """No source is configured for the requested operation."""


class FanOutTimeoutError(FanOutError):
    """The joint wait over all sources exceeded its budget."""


class AllSourcesFailedError(FanOutError):
    """Every source failed individually."""

    def __init__(self, failures: tuple[Any, ...]) -> None:
        super().__init__(f"All {len(failures)} sources failed")
        self.failures = failures


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class CacheError(InsightsError):
    """The cache could not serve the call (distinct from producer errors)."""


class CacheLockTimeoutError(CacheError):
    """The per-key queue did not clear before the lock timeout."""

    def __init__(self, key: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:.1f}s waiting for cache key '{key}'")
        self.key = key
        self.timeout = timeout


class CacheQueueFullError(CacheError):
    """Too many callers are already queued on the same key."""

    def __init__(self, key: str, max_pending: int) -> None:
        super().__init__(f"Too many pending calls for cache key '{key}' (max {max_pending})")
        self.key = key
        self.max_pending = max_pending


# ---------------------------------------------------------------------------
# Data quality
# ---------------------------------------------------------------------------


class DataQualityError(InsightsError):
    """Fetched data is internally inconsistent; the affected position is dropped."""
