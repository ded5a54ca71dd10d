"""Pure parsing functions for subgraph responses: no I/O."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..models import (
    AprStateEntry,
    PositionKind,
    PositionSnapshot,
    PriceSnapshot,
    RawInteractionRecord,
    Token,
    VaultHarvest,
    VaultHarvests,
    VaultPrice,
)
from ..periods import from_unix_time

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Subgraph prices are 18-decimal fixed point integers.
PRICE_DECIMALS = 18


def interpret_as_decimal(raw_value: Any, decimals: int | str) -> Decimal:
    """Scale a raw integer amount down by ``decimals``.

    Examples:
        ("1500000", 6) → Decimal("1.5")
        (None, 18) → Decimal("0")
    """
    if raw_value is None or raw_value == "":
        return Decimal(0)
    return Decimal(str(raw_value)).scaleb(-int(decimals))


def parse_token(raw: dict[str, Any] | None) -> Token | None:
    """Build a Token, treating a missing or zero address as no token."""
    if not raw:
        return None
    address = raw.get("address") or ""
    if not address or address == ZERO_ADDRESS:
        return None
    return Token(
        address=address,
        decimals=int(raw.get("decimals", 18)),
        name=raw.get("name") or None,
    )


def _tokens(raw: list[dict[str, Any]] | None) -> tuple[Token, ...]:
    return tuple(t for t in (parse_token(r) for r in raw or []) if t is not None)


def _strings(raw: list[Any] | None) -> tuple[str, ...]:
    return tuple(str(v) for v in raw or [])


def _tx_hash(interaction: dict[str, Any]) -> str:
    return (interaction.get("createdWith") or {}).get("hash", "")


# ---------------------------------------------------------------------------
# Investor timeline
# ---------------------------------------------------------------------------


def parse_clm_position(chain: str, raw: dict[str, Any]) -> PositionSnapshot:
    clm = raw.get("clm") or {}
    address = clm.get("address", "")
    raw_token0 = clm.get("underlyingToken0") or {}
    raw_token1 = clm.get("underlyingToken1") or {}

    interactions = tuple(
        RawInteractionRecord(
            chain=chain,
            id=i.get("id", ""),
            position_address=address,
            transaction_hash=_tx_hash(i),
            timestamp=int(i.get("timestamp", 0)),
            interaction_type=i.get("type", ""),
            manager_balance=i.get("managerBalance"),
            manager_balance_delta=i.get("managerBalanceDelta"),
            reward_pool_balances=_strings(i.get("rewardPoolBalances")),
            reward_pool_balance_deltas=_strings(i.get("rewardPoolBalancesDelta")),
            underlying_balances=(
                str(i.get("underlyingBalance0") or 0),
                str(i.get("underlyingBalance1") or 0),
            ),
            underlying_balance_deltas=(
                str(i.get("underlyingBalance0Delta") or 0),
                str(i.get("underlyingBalance1Delta") or 0),
            ),
            underlying_to_native_prices=(
                str(i.get("token0ToNativePrice") or 0),
                str(i.get("token1ToNativePrice") or 0),
            ),
            native_to_usd_price=i.get("nativeToUSDPrice"),
        )
        for i in raw.get("interactions") or []
    )

    return PositionSnapshot(
        chain=chain,
        address=address,
        kind=PositionKind.CLM,
        manager_token=parse_token(clm.get("managerToken")),
        reward_pool_tokens=_tokens(clm.get("rewardPoolTokens")),
        reward_pool_tokens_order=_strings(clm.get("rewardPoolTokensOrder")),
        underlying_tokens=_tokens([raw_token0, raw_token1]),
        underlying_tokens_order=(
            raw_token0.get("address") or "",
            raw_token1.get("address") or "",
        ),
        interactions=interactions,
    )


def parse_classic_position(chain: str, raw: dict[str, Any]) -> PositionSnapshot:
    classic = raw.get("classic") or {}
    address = classic.get("address", "")

    interactions = tuple(
        RawInteractionRecord(
            chain=chain,
            id=i.get("id", ""),
            position_address=address,
            transaction_hash=_tx_hash(i),
            timestamp=int(i.get("timestamp", 0)),
            interaction_type=i.get("type", ""),
            manager_balance=i.get("vaultBalance"),
            manager_balance_delta=i.get("vaultBalanceDelta"),
            reward_pool_balances=_strings(i.get("rewardPoolBalances")),
            reward_pool_balance_deltas=_strings(i.get("rewardPoolBalancesDelta")),
            underlying_balances=_strings(i.get("vaultUnderlyingBreakdownBalances")),
            underlying_balance_deltas=_strings(
                i.get("vaultUnderlyingBreakdownBalancesDelta")
            ),
            underlying_to_native_prices=_strings(
                i.get("underlyingBreakdownToNativePrices")
            ),
            native_to_usd_price=i.get("nativeToUSDPrice"),
        )
        for i in raw.get("interactions") or []
    )

    return PositionSnapshot(
        chain=chain,
        address=address,
        kind=PositionKind.CLASSIC,
        manager_token=parse_token(classic.get("vaultSharesToken")),
        reward_pool_tokens=_tokens(classic.get("rewardPoolTokens")),
        reward_pool_tokens_order=_strings(classic.get("rewardPoolTokensOrder")),
        underlying_tokens=_tokens(classic.get("underlyingBreakdownTokens")),
        underlying_tokens_order=_strings(classic.get("underlyingBreakdownTokensOrder")),
        interactions=interactions,
    )


def parse_timeline_page(chain: str, data: dict[str, Any]) -> list[PositionSnapshot]:
    """Turn one ``InvestorTimeline`` page into position snapshots."""
    positions = [parse_clm_position(chain, p) for p in data.get("clmPositions") or []]
    positions.extend(
        parse_classic_position(chain, p) for p in data.get("classicPositions") or []
    )
    return positions


# ---------------------------------------------------------------------------
# Vault yields
# ---------------------------------------------------------------------------


def parse_vault_apr_state(vault: dict[str, Any]) -> list[AprStateEntry]:
    """Collected fees and TVL of a CLM vault, both valued in the native token."""
    decimals0 = int((vault.get("underlyingToken0") or {}).get("decimals", 18))
    decimals1 = int((vault.get("underlyingToken1") or {}).get("decimals", 18))

    entries: list[AprStateEntry] = []
    for fee in vault.get("collectedFees") or []:
        token0_to_native = interpret_as_decimal(fee.get("token0ToNativePrice"), PRICE_DECIMALS)
        token1_to_native = interpret_as_decimal(fee.get("token1ToNativePrice"), PRICE_DECIMALS)

        collected = interpret_as_decimal(
            fee.get("collectedAmount0"), decimals0
        ) * token0_to_native + interpret_as_decimal(
            fee.get("collectedAmount1"), decimals1
        ) * token1_to_native

        amount0 = interpret_as_decimal(
            fee.get("underlyingMainAmount0"), decimals0
        ) + interpret_as_decimal(fee.get("underlyingAltAmount0"), decimals0)
        amount1 = interpret_as_decimal(
            fee.get("underlyingMainAmount1"), decimals1
        ) + interpret_as_decimal(fee.get("underlyingAltAmount1"), decimals1)

        entries.append(
            AprStateEntry(
                collected_amount=collected,
                collect_timestamp=from_unix_time(fee.get("timestamp", 0)),
                total_value_locked=amount0 * token0_to_native + amount1 * token1_to_native,
            )
        )
    return entries


def parse_vault_price_range(vault: dict[str, Any]) -> tuple[Decimal, Decimal, Decimal]:
    """(range min, current price, range max) of token0 expressed in token1."""
    decimals1 = int((vault.get("underlyingToken1") or {}).get("decimals", 18))
    return (
        interpret_as_decimal(vault.get("priceRangeMin1"), decimals1),
        interpret_as_decimal(vault.get("priceOfToken0InToken1"), decimals1),
        interpret_as_decimal(vault.get("priceRangeMax1"), decimals1),
    )


def parse_vault_price(vault: dict[str, Any]) -> VaultPrice:
    price_min, current, price_max = parse_vault_price_range(vault)
    return VaultPrice(min=price_min, current=current, max=price_max)


def parse_price_snapshots(vault: dict[str, Any]) -> list[PriceSnapshot]:
    """Snapshots of a vault, prices scaled by token1 decimals."""
    decimals1 = int((vault.get("underlyingToken1") or {}).get("decimals", 18))
    return [
        PriceSnapshot(
            timestamp=int(snapshot.get("roundedTimestamp", 0)),
            min=interpret_as_decimal(snapshot.get("priceRangeMin1"), decimals1),
            value=interpret_as_decimal(snapshot.get("priceOfToken0InToken1"), decimals1),
            max=interpret_as_decimal(snapshot.get("priceRangeMax1"), decimals1),
        )
        for snapshot in vault.get("snapshots") or []
    ]


def parse_snapshot_range(vault: dict[str, Any]) -> tuple[int, int]:
    """(first, last) snapshot timestamps; 0 where the vault has none."""

    def _timestamp(field: str) -> int:
        snapshots = vault.get(field) or []
        return int(snapshots[0].get("roundedTimestamp", 0)) if snapshots else 0

    return _timestamp("minSnapshot"), _timestamp("maxSnapshot")


def parse_vault_harvests(vault: dict[str, Any]) -> VaultHarvests:
    decimals0 = int((vault.get("underlyingToken0") or {}).get("decimals", 18))
    decimals1 = int((vault.get("underlyingToken1") or {}).get("decimals", 18))
    shares_decimals = int((vault.get("sharesToken") or {}).get("decimals", 18))

    harvests: list[VaultHarvest] = []
    for harvest in vault.get("harvests") or []:
        native_to_usd = interpret_as_decimal(harvest.get("nativeToUSDPrice"), PRICE_DECIMALS)
        harvests.append(
            VaultHarvest(
                id=str(harvest.get("id", "")),
                timestamp=int(harvest.get("timestamp", 0)),
                compounded_amount0=interpret_as_decimal(
                    harvest.get("compoundedAmount0"), decimals0
                ),
                compounded_amount1=interpret_as_decimal(
                    harvest.get("compoundedAmount1"), decimals1
                ),
                token0_to_usd=interpret_as_decimal(
                    harvest.get("token0ToNativePrice"), PRICE_DECIMALS
                ) * native_to_usd,
                token1_to_usd=interpret_as_decimal(
                    harvest.get("token1ToNativePrice"), PRICE_DECIMALS
                ) * native_to_usd,
                total_supply=interpret_as_decimal(harvest.get("totalSupply"), shares_decimals),
            )
        )

    return VaultHarvests(vault_address=str(vault.get("vaultAddress", "")), harvests=tuple(harvests))
