"""Cache store protocol: key/value storage with per-entry TTL."""
from typing import Any, Protocol


class CacheStore(Protocol):
    """Abstract interface for the storage behind the single-flight cache."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None: ...

    def delete(self, key: str) -> None: ...
