"""Fold raw subgraph interactions into one record per transaction."""
from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Sequence

from ..errors import DataQualityError
from ..models import (
    ZERO,
    BalanceDelta,
    MergedInteraction,
    PositionKind,
    PositionSnapshot,
    PositionTokens,
    RawInteractionRecord,
    Token,
)
from ..periods import from_unix_time
from ..sources.parser import PRICE_DECIMALS, interpret_as_decimal
from .ordering import resolve_position_tokens

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _legs(
    balances: Sequence[str],
    deltas: Sequence[str],
    tokens: Sequence[Token],
    leg: str,
) -> tuple[BalanceDelta, ...]:
    if len(balances) != len(tokens) or len(deltas) != len(tokens):
        raise DataQualityError(
            f"{leg} arrays have {len(balances)} balances and {len(deltas)} deltas "
            f"for {len(tokens)} tokens"
        )
    return tuple(
        BalanceDelta(
            balance=interpret_as_decimal(balance, token.decimals),
            delta=interpret_as_decimal(delta, token.decimals),
        )
        for balance, delta, token in zip(balances, deltas, tokens)
    )


def _total(manager: BalanceDelta, reward_pools: Iterable[BalanceDelta]) -> BalanceDelta:
    total = manager
    for pool in reward_pools:
        total = BalanceDelta(balance=total.balance + pool.balance, delta=total.delta + pool.delta)
    return total


def _usd(underlying: Sequence[BalanceDelta], prices: Sequence[Decimal]) -> BalanceDelta:
    return BalanceDelta(
        balance=sum((leg.balance * price for leg, price in zip(underlying, prices)), ZERO),
        delta=sum((leg.delta * price for leg, price in zip(underlying, prices)), ZERO),
    )


def decode_interaction(
    record: RawInteractionRecord,
    tokens: PositionTokens,
    kind: PositionKind = PositionKind.CLM,
) -> MergedInteraction:
    """Scale one raw record into decimal legs using each token's decimals.

    Raises:
        DataQualityError: an amount array does not match its token list.
    """
    manager = BalanceDelta(
        balance=interpret_as_decimal(record.manager_balance, tokens.manager.decimals),
        delta=interpret_as_decimal(record.manager_balance_delta, tokens.manager.decimals),
    )
    reward_pools = _legs(
        record.reward_pool_balances,
        record.reward_pool_balance_deltas,
        tokens.reward_pools,
        "reward pool",
    )
    underlying = _legs(
        record.underlying_balances,
        record.underlying_balance_deltas,
        tokens.underlying,
        "underlying",
    )
    if len(record.underlying_to_native_prices) != len(tokens.underlying):
        raise DataQualityError(
            f"{len(record.underlying_to_native_prices)} underlying prices "
            f"for {len(tokens.underlying)} tokens"
        )

    native_to_usd = interpret_as_decimal(record.native_to_usd_price, PRICE_DECIMALS)
    underlying_to_usd = tuple(
        interpret_as_decimal(price, PRICE_DECIMALS) * native_to_usd
        for price in record.underlying_to_native_prices
    )

    return MergedInteraction(
        datetime=from_unix_time(record.timestamp),
        chain=record.chain,
        transaction_hash=record.transaction_hash,
        position_address=record.position_address,
        kind=kind,
        tokens=tokens,
        manager=manager,
        reward_pools=reward_pools,
        total=_total(manager, reward_pools),
        underlying=underlying,
        underlying_to_usd=underlying_to_usd,
        usd=_usd(underlying, underlying_to_usd),
        actions=(record.interaction_type,) if record.interaction_type else (),
    )


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def _fold(current: MergedInteraction, following: MergedInteraction) -> MergedInteraction:
    """Latest balances and prices win, deltas accumulate leg by leg."""
    manager = current.manager.merge(following.manager)
    reward_pools = tuple(
        a.merge(b) for a, b in zip(current.reward_pools, following.reward_pools)
    )
    underlying = tuple(a.merge(b) for a, b in zip(current.underlying, following.underlying))
    prices = following.underlying_to_usd

    return replace(
        current,
        manager=manager,
        reward_pools=reward_pools,
        total=_total(manager, reward_pools),
        underlying=underlying,
        underlying_to_usd=prices,
        usd=_usd(underlying, prices),
        actions=current.actions + following.actions,
    )


def merge_interactions(
    records: Iterable[RawInteractionRecord],
    tokens: PositionTokens,
    kind: PositionKind = PositionKind.CLM,
) -> list[MergedInteraction]:
    """One entry per (chain, transaction hash), in order of first appearance.

    The first record of a transaction gives the timestamp; records of the
    same transaction are folded in arrival order.
    """
    merged: dict[tuple[str, str], MergedInteraction] = {}
    for record in records:
        decoded = decode_interaction(record, tokens, kind)
        key = (record.chain, record.transaction_hash)
        current = merged.get(key)
        merged[key] = decoded if current is None else _fold(current, decoded)
    return list(merged.values())


def position_to_interactions(position: PositionSnapshot) -> list[MergedInteraction]:
    """Merged interactions of one position, or ``[]`` if its data is inconsistent."""
    try:
        tokens = resolve_position_tokens(position)
        return merge_interactions(position.interactions, tokens, position.kind)
    except DataQualityError as e:
        logger.error(
            "Dropping %s position %s on %s: %s",
            position.kind.value,
            position.address,
            position.chain,
            e,
        )
        return []


def combine_positions(positions: Iterable[PositionSnapshot]) -> list[PositionSnapshot]:
    """Collapse copies of a position returned by redundant sources.

    Positions match on (chain, address, kind); their interactions are
    unioned by record id, first copy wins.
    """
    combined: dict[tuple[str, str, PositionKind], PositionSnapshot] = {}
    seen: dict[tuple[str, str, PositionKind], set[str]] = {}

    for position in positions:
        key = (position.chain, position.address.lower(), position.kind)
        ids = seen.setdefault(key, set())
        fresh = []
        for record in position.interactions:
            if record.id and record.id in ids:
                continue
            ids.add(record.id)
            fresh.append(record)

        existing = combined.get(key)
        if existing is None:
            combined[key] = replace(position, interactions=tuple(fresh))
        else:
            combined[key] = replace(
                existing, interactions=existing.interactions + tuple(fresh)
            )

    return list(combined.values())


def get_merged_timeline(positions: Iterable[PositionSnapshot]) -> list[MergedInteraction]:
    """Every position's merged interactions, oldest first."""
    timeline: list[MergedInteraction] = []
    for position in combine_positions(positions):
        timeline.extend(position_to_interactions(position))
    return sorted(timeline, key=lambda interaction: interaction.datetime)
