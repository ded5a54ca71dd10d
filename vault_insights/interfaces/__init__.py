"""Protocol interfaces for vault insights."""
from .cache_store import CacheStore
from .source_client import SourceClient

__all__ = ["CacheStore", "SourceClient"]
