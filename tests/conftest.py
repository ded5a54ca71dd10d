"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from vault_insights.config import (
    AppConfig,
    CacheConfig,
    ChainConfig,
    FanOutConfig,
    PaginationConfig,
    SubgraphConfig,
)
from vault_insights.models import (
    PositionKind,
    PositionSnapshot,
    RawInteractionRecord,
    SourceDescriptor,
    Token,
)

E18 = 10**18

MANAGER = "0xmanager"
POOL_A = "0xpoola"
POOL_B = "0xpoolb"
TOKEN0 = "0xtoken0"
TOKEN1 = "0xtoken1"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        cache=CacheConfig(lock_timeout_seconds=1.0, max_pending=10),
        fan_out=FanOutConfig(timeout_seconds=2.0),
        pagination=PaginationConfig(page_size=2, fetch_at_most=100),
        chains={
            "arbitrum": ChainConfig(
                subgraphs=(
                    SubgraphConfig(name="clm", url="https://sg.example.com/arbitrum"),
                    SubgraphConfig(name="clm-beta", url="https://sg.example.com/arbitrum-beta"),
                )
            ),
            "optimism": ChainConfig(
                subgraphs=(SubgraphConfig(name="clm", url="https://sg.example.com/optimism"),)
            ),
        },
    )


@pytest.fixture()
def arbitrum_source() -> SourceDescriptor:
    return SourceDescriptor(
        chain="arbitrum", name="clm", url="https://sg.example.com/arbitrum"
    )


SAMPLE_YAML = textwrap.dedent("""\
    cache:
      lock_timeout_seconds: 5
      timeline_ttl_seconds: 60
    fan_out:
      timeout_seconds: 15
    pagination:
      page_size: 500
      fetch_at_most: 5000
    chains:
      arbitrum:
        subgraphs:
          - name: clm
            url: "https://sg.example.com/arbitrum"
          - name: clm-beta
            tag: v2
            url: "https://sg.example.com/arbitrum-beta"
      optimism:
        subgraphs:
          - name: clm
            url: "https://sg.example.com/optimism"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Timeline fixtures
# ---------------------------------------------------------------------------


def make_record(
    tx: str,
    timestamp: int = 1_700_000_000,
    *,
    record_id: str | None = None,
    chain: str = "arbitrum",
    interaction_type: str = "MANAGER_DEPOSIT",
    manager: tuple[int, int] = (0, 0),
    pools: tuple[tuple[int, int], ...] = ((0, 0), (0, 0)),
    underlying: tuple[tuple[int, int], ...] = ((0, 0), (0, 0)),
    prices: tuple[int, ...] = (E18, E18),
    native_to_usd: int = E18,
) -> RawInteractionRecord:
    """Build a raw record from whole-unit integers (18 decimals everywhere)."""
    return RawInteractionRecord(
        chain=chain,
        id=record_id or f"{tx}-{interaction_type}",
        position_address=MANAGER,
        transaction_hash=tx,
        timestamp=timestamp,
        interaction_type=interaction_type,
        manager_balance=str(manager[0] * E18),
        manager_balance_delta=str(manager[1] * E18),
        reward_pool_balances=tuple(str(b * E18) for b, _ in pools),
        reward_pool_balance_deltas=tuple(str(d * E18) for _, d in pools),
        underlying_balances=tuple(str(b * E18) for b, _ in underlying),
        underlying_balance_deltas=tuple(str(d * E18) for _, d in underlying),
        underlying_to_native_prices=tuple(str(p) for p in prices),
        native_to_usd_price=str(native_to_usd),
    )


def make_position(
    *records: RawInteractionRecord,
    chain: str = "arbitrum",
    reward_pool_order: tuple[str, ...] = (POOL_A, POOL_B),
    reward_pool_tokens: tuple[Token, ...] | None = None,
) -> PositionSnapshot:
    return PositionSnapshot(
        chain=chain,
        address=MANAGER,
        kind=PositionKind.CLM,
        manager_token=Token(address=MANAGER, decimals=18, name="CLM Vault"),
        # Deliberately fetched in reverse of the canonical order.
        reward_pool_tokens=(
            reward_pool_tokens
            if reward_pool_tokens is not None
            else (Token(address=POOL_B, decimals=18), Token(address=POOL_A, decimals=18))
        ),
        reward_pool_tokens_order=reward_pool_order,
        underlying_tokens=(Token(address=TOKEN0, decimals=18), Token(address=TOKEN1, decimals=18)),
        underlying_tokens_order=(TOKEN0, TOKEN1),
        interactions=records,
    )


# ---------------------------------------------------------------------------
# Raw subgraph payloads
# ---------------------------------------------------------------------------


def raw_clm_position(interactions: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "clm": {
            "address": MANAGER,
            "managerToken": {"address": MANAGER, "decimals": "18", "name": "CLM Vault"},
            "rewardPoolTokens": [],
            "rewardPoolTokensOrder": [],
            "underlyingToken0": {"address": TOKEN0, "decimals": "6", "name": "USDC"},
            "underlyingToken1": {"address": TOKEN1, "decimals": "18", "name": "WETH"},
        },
        "interactions": interactions,
    }


def raw_clm_interaction(
    record_id: str, tx: str, timestamp: int, interaction_type: str = "MANAGER_DEPOSIT"
) -> dict[str, Any]:
    return {
        "id": record_id,
        "timestamp": str(timestamp),
        "type": interaction_type,
        "createdWith": {"hash": tx},
        "managerBalance": str(10 * E18),
        "managerBalanceDelta": str(10 * E18),
        "rewardPoolBalances": [],
        "rewardPoolBalancesDelta": [],
        "underlyingBalance0": "1500000",
        "underlyingBalance0Delta": "1500000",
        "underlyingBalance1": str(E18),
        "underlyingBalance1Delta": str(E18),
        "token0ToNativePrice": str(E18 // 2),
        "token1ToNativePrice": str(E18),
        "nativeToUSDPrice": str(2000 * E18),
    }


def raw_vault(
    address: str, fees: list[dict[str, Any]], harvests: list[dict[str, Any]] | None = None
) -> dict[str, Any]:
    vault: dict[str, Any] = {
        "vaultAddress": address,
        "priceRangeMin1": str(1500 * E18),
        "priceOfToken0InToken1": str(2000 * E18),
        "priceRangeMax1": str(2500 * E18),
        "underlyingToken0": {"decimals": "18"},
        "underlyingToken1": {"decimals": "18"},
        "sharesToken": {"decimals": "18"},
        "collectedFees": fees,
    }
    if harvests is not None:
        vault["harvests"] = harvests
    return vault


def raw_fee(fee_id: str, timestamp: int, collected: int, tvl: int) -> dict[str, Any]:
    """A fee collection of ``collected`` token0 against ``tvl`` token0, price 1."""
    return {
        "id": fee_id,
        "timestamp": str(timestamp),
        "collectedAmount0": str(collected * E18),
        "collectedAmount1": "0",
        "underlyingMainAmount0": str(tvl * E18),
        "underlyingMainAmount1": "0",
        "underlyingAltAmount0": "0",
        "underlyingAltAmount1": "0",
        "token0ToNativePrice": str(E18),
        "token1ToNativePrice": str(E18),
    }


@pytest.fixture()
def record_factory():
    return make_record


@pytest.fixture()
def position_factory():
    return make_position


@pytest.fixture()
def raw_payloads():
    """Builders for raw subgraph payloads, keyed by name."""
    return {
        "clm_position": raw_clm_position,
        "clm_interaction": raw_clm_interaction,
        "vault": raw_vault,
        "fee": raw_fee,
    }
