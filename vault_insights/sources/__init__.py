"""Subgraph sources: fan-out, pagination, transport and parsing."""
from .fan_out import execute_on_all_sources
from .pagination import paginate, paginate_source_calls
from .registry import SourceRegistry
from .subgraph import SubgraphClient

__all__ = [
    "SourceRegistry",
    "SubgraphClient",
    "execute_on_all_sources",
    "paginate",
    "paginate_source_calls",
]
