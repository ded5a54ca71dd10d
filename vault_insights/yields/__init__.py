"""APR/APY engine."""
from .apr import (
    ONE_YEAR_MS,
    apr_to_apy,
    calculate_last_apr,
    evict_old_apr_entries,
    get_apr_apy,
    merge_unique,
    prepare_apr_state,
)

__all__ = [
    "ONE_YEAR_MS",
    "apr_to_apy",
    "calculate_last_apr",
    "evict_old_apr_entries",
    "get_apr_apy",
    "merge_unique",
    "prepare_apr_state",
]
