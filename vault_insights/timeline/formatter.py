"""JSON-ready rendering of merged interactions."""
from __future__ import annotations

from typing import Any

from ..models import MergedInteraction, PositionKind, decimal_str

# Product namespace used in ``product_key`` per position kind.
PRODUCT_TYPES = {PositionKind.CLM: "clm", PositionKind.CLASSIC: "vault"}


def product_key(interaction: MergedInteraction) -> str:
    """``beefy:<clm|vault>:<chain>:<address>``."""
    product_type = PRODUCT_TYPES[interaction.kind]
    return f"beefy:{product_type}:{interaction.chain}:{interaction.position_address}"


def format_interaction(interaction: MergedInteraction) -> dict[str, Any]:
    """Flatten a merged interaction; decimals are rendered as strings.

    Underlying legs appear both as a list and as indexed
    ``underlying{i}_balance`` / ``underlying{i}_diff`` / ``token{i}_to_usd``
    keys.
    """
    tokens = interaction.tokens
    output: dict[str, Any] = {
        "datetime": interaction.datetime.isoformat(),
        "product_key": product_key(interaction),
        "display_name": tokens.manager.name or tokens.manager.address,
        "chain": interaction.chain,
        "transaction_hash": interaction.transaction_hash,
        "share_balance": decimal_str(interaction.total.balance),
        "share_diff": decimal_str(interaction.total.delta),
        "manager_address": tokens.manager.address,
        "manager_balance": decimal_str(interaction.manager.balance),
        "manager_diff": decimal_str(interaction.manager.delta),
        "reward_pools": [
            {
                "reward_pool_address": token.address,
                "reward_pool_balance": decimal_str(pool.balance),
                "reward_pool_diff": decimal_str(pool.delta),
            }
            for token, pool in zip(tokens.reward_pools, interaction.reward_pools)
        ],
        "underlying": [
            {
                "token_address": token.address,
                "balance": decimal_str(leg.balance),
                "diff": decimal_str(leg.delta),
                "to_usd": decimal_str(price),
            }
            for token, leg, price in zip(
                tokens.underlying, interaction.underlying, interaction.underlying_to_usd
            )
        ],
    }

    for i, (leg, price) in enumerate(zip(interaction.underlying, interaction.underlying_to_usd)):
        output[f"underlying{i}_balance"] = decimal_str(leg.balance)
        output[f"underlying{i}_diff"] = decimal_str(leg.delta)
        output[f"token{i}_to_usd"] = decimal_str(price)

    output["usd_balance"] = decimal_str(interaction.usd.balance)
    output["usd_diff"] = decimal_str(interaction.usd.delta)
    output["actions"] = list(interaction.actions)
    return output
