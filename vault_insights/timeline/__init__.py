"""Investor timeline: canonical ordering, merging and formatting."""
from .formatter import format_interaction
from .merge import (
    combine_positions,
    decode_interaction,
    get_merged_timeline,
    merge_interactions,
    position_to_interactions,
)
from .ordering import resolve_position_tokens, sort_entities_by_order_list

__all__ = [
    "combine_positions",
    "decode_interaction",
    "format_interaction",
    "get_merged_timeline",
    "merge_interactions",
    "position_to_interactions",
    "resolve_position_tokens",
    "sort_entities_by_order_list",
]
