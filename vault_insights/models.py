"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ZERO = Decimal(0)


def decimal_str(value: Decimal) -> str:
    """Plain notation without trailing zeros (Decimal("12.000") -> "12")."""
    return format(value.normalize(), "f")


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceDescriptor:
    """One backing subgraph instance for one chain."""

    chain: str
    name: str
    tag: str = "latest"
    url: str = ""

    def __str__(self) -> str:
        return f"{self.chain}/{self.name}@{self.tag}"


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """A successful per-source result, tagged with the source that produced it."""

    source: SourceDescriptor
    value: T


@dataclass(frozen=True)
class SourceFailure:
    """A per-source failure (error or timeout)."""

    source: SourceDescriptor
    error: BaseException


@dataclass(frozen=True)
class FanOutResult(Generic[T]):
    results: tuple[SourceResult[T], ...] = ()
    errors: tuple[SourceFailure, ...] = ()


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


class PositionKind(str, Enum):
    CLM = "clm"
    CLASSIC = "classic"


@dataclass(frozen=True)
class Token:
    address: str
    decimals: int
    name: str | None = None


@dataclass(frozen=True)
class BalanceDelta:
    """Absolute balance after an event plus the amount the event changed it by."""

    balance: Decimal = ZERO
    delta: Decimal = ZERO

    def merge(self, following: BalanceDelta) -> BalanceDelta:
        """Fold a later observation in: latest balance wins, deltas add up."""
        return BalanceDelta(balance=following.balance, delta=self.delta + following.delta)


@dataclass(frozen=True)
class RawInteractionRecord:
    """One on-chain interaction as indexed by a subgraph.

    Amounts are the raw integer strings from the subgraph. Reward pool and
    underlying arrays are aligned with the position's canonical token order.
    """

    chain: str
    id: str
    position_address: str
    transaction_hash: str
    timestamp: int
    interaction_type: str
    manager_balance: str | None = None
    manager_balance_delta: str | None = None
    reward_pool_balances: tuple[str, ...] = ()
    reward_pool_balance_deltas: tuple[str, ...] = ()
    underlying_balances: tuple[str, ...] = ()
    underlying_balance_deltas: tuple[str, ...] = ()
    underlying_to_native_prices: tuple[str, ...] = ()
    native_to_usd_price: str | None = None


@dataclass(frozen=True)
class PositionSnapshot:
    """An investor position with its token metadata and raw interactions."""

    chain: str
    address: str
    kind: PositionKind
    manager_token: Token | None
    reward_pool_tokens: tuple[Token, ...] = ()
    reward_pool_tokens_order: tuple[str, ...] = ()
    underlying_tokens: tuple[Token, ...] = ()
    underlying_tokens_order: tuple[str, ...] = ()
    interactions: tuple[RawInteractionRecord, ...] = ()


@dataclass(frozen=True)
class PositionTokens:
    """Tokens of a position, already sorted in canonical order."""

    manager: Token
    reward_pools: tuple[Token, ...] = ()
    underlying: tuple[Token, ...] = ()


@dataclass(frozen=True)
class MergedInteraction:
    """All records of one transaction on one position, folded together."""

    datetime: datetime
    chain: str
    transaction_hash: str
    position_address: str
    kind: PositionKind
    tokens: PositionTokens
    manager: BalanceDelta
    reward_pools: tuple[BalanceDelta, ...]
    total: BalanceDelta
    underlying: tuple[BalanceDelta, ...]
    underlying_to_usd: tuple[Decimal, ...]
    usd: BalanceDelta
    actions: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Yield
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AprStateEntry:
    """One fee collection observation."""

    collected_amount: Decimal
    collect_timestamp: datetime
    total_value_locked: Decimal


@dataclass(frozen=True)
class AprResult:
    """Annualized rates as fractions (1 == 100%)."""

    apr: Decimal = ZERO
    apy: Decimal = ZERO


@dataclass(frozen=True)
class VaultApr:
    """Yield summary for one vault over a period."""

    vault_address: str
    price_range_min: Decimal
    current_price: Decimal
    price_range_max: Decimal
    apr: Decimal
    apy: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "vaultAddress": self.vault_address,
            "priceRangeMin1": decimal_str(self.price_range_min),
            "priceOfToken0InToken1": decimal_str(self.current_price),
            "priceRangeMax1": decimal_str(self.price_range_max),
            "apr": decimal_str(self.apr),
            "apy": decimal_str(self.apy),
        }


@dataclass(frozen=True)
class VaultPrice:
    """Current price of token0 in token1 and the vault's active range."""

    min: Decimal
    current: Decimal
    max: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "min": decimal_str(self.min),
            "current": decimal_str(self.current),
            "max": decimal_str(self.max),
        }


@dataclass(frozen=True)
class PriceSnapshot:
    """Price and range of a vault at one rounded snapshot timestamp."""

    timestamp: int
    min: Decimal
    value: Decimal
    max: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "t": self.timestamp,
            "min": decimal_str(self.min),
            "v": decimal_str(self.value),
            "max": decimal_str(self.max),
        }


@dataclass(frozen=True)
class ChainVaultApy:
    """Trailing 24h yield of one vault, as listed in the cross-chain summary."""

    chain: str
    vault_address: str
    apr: Decimal
    apy: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "chain": self.chain,
            "vault_address": self.vault_address,
            "apr_24h": f"{self.apr:.6f}",
            "apy_24h": f"{self.apy:.6f}",
        }


@dataclass(frozen=True)
class VaultHarvest:
    """One harvest; ``id`` is the subgraph event id and is not rendered."""

    id: str
    timestamp: int
    compounded_amount0: Decimal
    compounded_amount1: Decimal
    token0_to_usd: Decimal
    token1_to_usd: Decimal
    total_supply: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": str(self.timestamp),
            "compoundedAmount0": decimal_str(self.compounded_amount0),
            "compoundedAmount1": decimal_str(self.compounded_amount1),
            "token0ToUsd": decimal_str(self.token0_to_usd),
            "token1ToUsd": decimal_str(self.token1_to_usd),
            "totalSupply": decimal_str(self.total_supply),
        }


@dataclass(frozen=True)
class VaultHarvests:
    vault_address: str
    harvests: tuple[VaultHarvest, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "vaultAddress": self.vault_address,
            "harvests": [h.to_dict() for h in self.harvests],
        }
