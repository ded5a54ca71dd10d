"""Command-line interface for vault insights."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from .cache import AsyncCache, TtlStore
from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .periods import PERIOD_SECONDS
from .services import TimelineService, VaultAprService
from .sources import SourceRegistry


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="vault-insights",
        description="Investor timelines and vault yields from redundant subgraphs",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    timeline_parser = sub.add_parser("timeline", help="Merged interaction timeline of an investor")
    timeline_parser.add_argument("investor", help="Investor address")

    vaults_parser = sub.add_parser("vaults", help="APR/APY of every vault on a chain")
    vaults_parser.add_argument("chain", help="Chain name as configured")
    vaults_parser.add_argument("period", choices=sorted(PERIOD_SECONDS), help="APR window")

    harvests_parser = sub.add_parser("harvests", help="Vault harvests since a unix timestamp")
    harvests_parser.add_argument("chain", help="Chain name as configured")
    harvests_parser.add_argument("since", type=int, help="Unix timestamp (seconds)")
    harvests_parser.add_argument(
        "--vault",
        dest="vaults",
        action="append",
        default=None,
        help="Restrict to this vault address (repeatable)",
    )

    price_parser = sub.add_parser("vault-price", help="Current price and range of one vault")
    price_parser.add_argument("chain", help="Chain name as configured")
    price_parser.add_argument("vault", help="Vault address")

    vault_harvests_parser = sub.add_parser("vault-harvests", help="Every harvest of one vault")
    vault_harvests_parser.add_argument("chain", help="Chain name as configured")
    vault_harvests_parser.add_argument("vault", help="Vault address")

    prices_parser = sub.add_parser("vault-prices", help="Historic price snapshots of one vault")
    prices_parser.add_argument("chain", help="Chain name as configured")
    prices_parser.add_argument("vault", help="Vault address")
    prices_parser.add_argument("period", choices=sorted(PERIOD_SECONDS), help="Snapshot period")
    prices_parser.add_argument("since", type=int, help="Unix timestamp (seconds)")

    range_parser = sub.add_parser(
        "vault-prices-range", help="First and last snapshot timestamps of one vault"
    )
    range_parser.add_argument("chain", help="Chain name as configured")
    range_parser.add_argument("vault", help="Vault address")
    range_parser.add_argument("period", choices=sorted(PERIOD_SECONDS), help="Snapshot period")

    apy_parser = sub.add_parser("apy", help="Trailing 24h APR/APY of every vault")
    apy_parser.add_argument(
        "--chain", default=None, help="Restrict to one chain (default: all chains)"
    )

    return parser


def build_cache(config: AppConfig) -> tuple[TtlStore, AsyncCache]:
    store = TtlStore(
        default_ttl=config.cache.default_ttl_seconds,
        check_period=config.cache.check_period_seconds,
    )
    cache = AsyncCache(
        store,
        lock_timeout=config.cache.lock_timeout_seconds,
        max_pending=config.cache.max_pending,
    )
    return store, cache


async def _run(args: argparse.Namespace) -> Any:
    """Execute the selected command and return its JSON-ready result."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    registry = SourceRegistry(config)
    store, cache = build_cache(config)
    store.start()

    try:
        if args.command == "timeline":
            service = TimelineService(registry, cache, config)
            return await service.get_investor_timeline(args.investor)
        vault_service = VaultAprService(registry, cache, config)
        if args.command == "vaults":
            return await vault_service.get_vaults(args.chain, args.period)
        if args.command == "harvests":
            return await vault_service.get_vaults_harvests(args.chain, args.since, args.vaults)
        if args.command == "vault-price":
            return await vault_service.get_vault_price(args.chain, args.vault)
        if args.command == "vault-harvests":
            return await vault_service.get_vault_harvests(args.chain, args.vault)
        if args.command == "vault-prices":
            return await vault_service.get_vault_historic_prices(
                args.chain, args.vault, args.period, args.since
            )
        if args.command == "vault-prices-range":
            return await vault_service.get_vault_historic_prices_range(
                args.chain, args.vault, args.period
            )
        return await vault_service.get_chain_apy(args.chain)
    finally:
        await store.close()


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    result = asyncio.run(_run(args))
    if result is None:
        print("Vault not found", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(result, indent=2))
