"""Canonical token ordering for multi-valued position legs."""
from __future__ import annotations

from typing import Callable, Iterable, Sequence, TypeVar

from ..errors import DataQualityError
from ..models import PositionSnapshot, PositionTokens, Token

E = TypeVar("E")


def sort_entities_by_order_list(
    entities: Iterable[E],
    key: Callable[[E], str],
    order: Sequence[str],
) -> list[E | None]:
    """Arrange ``entities`` to follow ``order``; missing ones leave a ``None`` slot.

    Keys are compared case-insensitively (addresses).
    """
    by_key = {key(entity).lower(): entity for entity in entities}
    return [by_key.get(k.lower()) for k in order]


def _ordered_tokens(
    tokens: tuple[Token, ...], order: tuple[str, ...], leg: str
) -> tuple[Token, ...]:
    ordered = sort_entities_by_order_list(tokens, lambda t: t.address, order)
    missing = [address for address, token in zip(order, ordered) if token is None]
    if missing:
        raise DataQualityError(f"{leg} token(s) {', '.join(missing) or '<empty>'} not found")
    return tuple(t for t in ordered if t is not None)


def resolve_position_tokens(position: PositionSnapshot) -> PositionTokens:
    """Resolve manager, reward pool and underlying tokens in canonical order.

    Raises:
        DataQualityError: a token named by an order list was not fetched, or
            the manager token is missing.
    """
    if position.manager_token is None:
        raise DataQualityError("missing manager token")

    return PositionTokens(
        manager=position.manager_token,
        reward_pools=_ordered_tokens(
            position.reward_pool_tokens, position.reward_pool_tokens_order, "reward pool"
        ),
        underlying=_ordered_tokens(
            position.underlying_tokens, position.underlying_tokens_order, "underlying"
        ),
    )
