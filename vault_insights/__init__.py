"""Investor timelines and vault yields from redundant subgraph sources."""

__version__ = "0.1.0"
