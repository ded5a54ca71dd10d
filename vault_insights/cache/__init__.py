"""Process-local caching."""
from .single_flight import AsyncCache
from .store import TtlStore

__all__ = ["AsyncCache", "TtlStore"]
