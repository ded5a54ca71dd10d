"""Vault pipelines: per-period APR/APY, harvests and per-vault prices."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Iterable

from ..cache import AsyncCache
from ..config import AppConfig
from ..errors import AllSourcesFailedError
from ..interfaces.source_client import SourceClient
from ..models import (
    ChainVaultApy,
    FanOutResult,
    PriceSnapshot,
    SourceDescriptor,
    VaultApr,
    VaultHarvest,
    VaultHarvests,
)
from ..periods import get_period_seconds, get_unix_time
from ..sources import SourceRegistry, execute_on_all_sources, paginate_source_calls
from ..sources.pagination import max_child_count
from ..sources.parser import (
    parse_price_snapshots,
    parse_snapshot_range,
    parse_vault_apr_state,
    parse_vault_harvests,
    parse_vault_price,
    parse_vault_price_range,
)
from ..yields import get_apr_apy, merge_unique

logger = logging.getLogger(__name__)

vaults_page_count = max_child_count("clms", "collectedFees")


def combine_vault_pages(pages: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Join the ``collectedFees`` windows of every page into one record per vault.

    The first copy of a vault provides its metadata; fees are deduplicated
    by id so overlapping sources do not count a collection twice.
    """
    vaults: dict[str, dict[str, Any]] = {}
    seen_fees: dict[str, set[str]] = {}

    for page in pages:
        for raw in page.get("clms") or []:
            address = str(raw.get("vaultAddress", "")).lower()
            vault = vaults.setdefault(address, {**raw, "collectedFees": []})
            seen = seen_fees.setdefault(address, set())
            for fee in raw.get("collectedFees") or []:
                fee_id = fee.get("id")
                if fee_id is not None and fee_id in seen:
                    continue
                seen.add(fee_id)
                vault["collectedFees"].append(fee)

    return list(vaults.values())


def _successful_values(outcome: FanOutResult, what: str) -> list[Any]:
    if outcome.errors:
        if not outcome.results:
            raise AllSourcesFailedError(outcome.errors)
        logger.warning(
            "%s: %d of %d sources failed",
            what,
            len(outcome.errors),
            len(outcome.errors) + len(outcome.results),
        )
    return [result.value for result in outcome.results]


class VaultAprService:
    """APR/APY, harvests and price history for the vaults of each configured chain."""

    def __init__(
        self,
        registry: SourceRegistry,
        cache: AsyncCache,
        config: AppConfig,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._config = config
        self._clock = clock

    @property
    def _ttl_ms(self) -> int:
        return self._config.cache.vaults_ttl_seconds * 1000

    # ------------------------------------------------------------------
    # APR
    # ------------------------------------------------------------------

    async def get_vaults(self, chain: str, period: str) -> list[dict[str, Any]]:
        """APR/APY of every vault on ``chain`` over ``period`` (``1h``, ``1d``, ``1w``).

        Raises:
            ValueError: unknown chain or period.
        """
        period_seconds = get_period_seconds(period)
        sources = self._registry.sources_for_chain(chain)
        return await self._cache.wrap(
            f"vaults:{chain}:{period}",
            self._ttl_ms,
            lambda: self._compute_vaults(sources, period_seconds),
        )

    async def _fetch_vault_pages(
        self, source: SourceDescriptor, since: int
    ) -> list[dict[str, Any]]:
        pagination = self._config.pagination
        return await paginate_source_calls(
            self._registry.client_for(source),
            lambda c, skip, first: c.vaults(since, skip, first),
            vaults_page_count,
            page_size=pagination.page_size,
            fetch_at_most=pagination.fetch_at_most,
        )

    async def _compute_vaults(
        self, sources: tuple[SourceDescriptor, ...], period_seconds: int
    ) -> list[dict[str, Any]]:
        now = self._clock()
        since = get_unix_time(now) - period_seconds

        outcome = await execute_on_all_sources(
            sources,
            lambda source: self._fetch_vault_pages(source, since),
            timeout=self._config.fan_out.timeout_seconds,
        )
        pages = [page for pages in _successful_values(outcome, "vaults") for page in pages]

        results: list[dict[str, Any]] = []
        for vault in combine_vault_pages(pages):
            price_min, price, price_max = parse_vault_price_range(vault)
            rates = get_apr_apy(parse_vault_apr_state(vault), period_seconds * 1000, now)
            results.append(
                VaultApr(
                    vault_address=str(vault.get("vaultAddress", "")),
                    price_range_min=price_min,
                    current_price=price,
                    price_range_max=price_max,
                    apr=rates.apr,
                    apy=rates.apy,
                ).to_dict()
            )

        logger.info("Computed APR for %d vaults since %d", len(results), since)
        return results

    # ------------------------------------------------------------------
    # Harvests
    # ------------------------------------------------------------------

    async def get_vaults_harvests(
        self, chain: str, since: int, vaults: list[str] | None = None
    ) -> list[dict[str, Any]]:
        """Harvests since ``since`` (unix seconds), optionally for some vaults only.

        The cache key rounds ``since`` to the minute.
        """
        sources = self._registry.sources_for_chain(chain)
        vaults_key = ",".join(sorted({v.lower() for v in vaults or []}))
        return await self._cache.wrap(
            f"vaults-harvests:{chain}:{int(since) // 60}:{vaults_key}",
            self._ttl_ms,
            lambda: self._compute_harvests(sources, int(since), vaults or []),
        )

    async def _compute_harvests(
        self, sources: tuple[SourceDescriptor, ...], since: int, vaults: list[str]
    ) -> list[dict[str, Any]]:
        outcome = await execute_on_all_sources(
            sources,
            lambda source: self._registry.client_for(source).vaults_harvests(
                since, vaults or None
            ),
            timeout=self._config.fan_out.timeout_seconds,
        )

        combined: dict[str, VaultHarvests] = {}
        for data in _successful_values(outcome, "vault harvests"):
            for raw in data.get("clms") or []:
                parsed = parse_vault_harvests(raw)
                if not parsed.harvests:
                    continue
                key = parsed.vault_address.lower()
                existing = combined.get(key)
                combined[key] = VaultHarvests(
                    vault_address=(existing or parsed).vault_address,
                    harvests=_combine_harvests(
                        existing.harvests if existing else (), parsed.harvests
                    ),
                )

        return [harvests.to_dict() for harvests in combined.values()]

    # ------------------------------------------------------------------
    # Single vault
    # ------------------------------------------------------------------

    async def _fetch_vault(
        self,
        chain: str,
        what: str,
        query: Callable[[SourceClient], Awaitable[dict[str, Any]]],
    ) -> list[dict[str, Any]]:
        """The ``clm`` object of every source that knows the vault."""
        outcome = await execute_on_all_sources(
            self._registry.sources_for_chain(chain),
            lambda source: query(self._registry.client_for(source)),
            timeout=self._config.fan_out.timeout_seconds,
        )
        return [data["clm"] for data in _successful_values(outcome, what) if data.get("clm")]

    async def get_vault_price(self, chain: str, vault_address: str) -> dict[str, Any] | None:
        """Current price and range of one vault, or ``None`` if no source knows it."""
        self._registry.sources_for_chain(chain)
        vault = vault_address.lower()
        return await self._cache.wrap(
            f"vault-price:{chain}:{vault}",
            self._ttl_ms,
            lambda: self._compute_vault_price(chain, vault),
        )

    async def _compute_vault_price(self, chain: str, vault: str) -> dict[str, Any] | None:
        found = await self._fetch_vault(chain, "vault price", lambda c: c.vault_price(vault))
        if not found:
            logger.info("Vault %s not found on %s", vault, chain)
            return None
        return parse_vault_price(found[0]).to_dict()

    async def get_vault_harvests(
        self, chain: str, vault_address: str
    ) -> list[dict[str, Any]] | None:
        """Every harvest of one vault, or ``None`` if no source knows it."""
        self._registry.sources_for_chain(chain)
        vault = vault_address.lower()
        return await self._cache.wrap(
            f"vault-harvests:{chain}:{vault}",
            self._ttl_ms,
            lambda: self._compute_vault_harvests(chain, vault),
        )

    async def _compute_vault_harvests(
        self, chain: str, vault: str
    ) -> list[dict[str, Any]] | None:
        found = await self._fetch_vault(chain, "vault harvests", lambda c: c.vault_harvests(vault))
        if not found:
            logger.info("Vault %s not found on %s", vault, chain)
            return None

        harvests: tuple[VaultHarvest, ...] = ()
        for raw in found:
            harvests = _combine_harvests(harvests, parse_vault_harvests(raw).harvests)
        return [h.to_dict() for h in harvests]

    async def get_vault_historic_prices(
        self, chain: str, vault_address: str, period: str, since: int
    ) -> list[dict[str, Any]] | None:
        """Price snapshots of ``period`` granularity after ``since`` (unix seconds).

        Returns ``None`` if no source knows the vault.
        """
        period_seconds = get_period_seconds(period)
        self._registry.sources_for_chain(chain)
        vault = vault_address.lower()
        return await self._cache.wrap(
            f"vault-prices:{chain}:{vault}:{period}:{int(since)}",
            self._ttl_ms,
            lambda: self._compute_historic_prices(chain, vault, period_seconds, int(since)),
        )

    async def _compute_historic_prices(
        self, chain: str, vault: str, period_seconds: int, since: int
    ) -> list[dict[str, Any]] | None:
        found = await self._fetch_vault(
            chain,
            "vault historic prices",
            lambda c: c.vault_historic_prices(vault, period_seconds, since),
        )
        if not found:
            logger.info("Vault %s not found on %s", vault, chain)
            return None

        snapshots: list[PriceSnapshot] = []
        for raw in found:
            snapshots = merge_unique(
                snapshots, parse_price_snapshots(raw), key=lambda s: s.timestamp
            )
        return [s.to_dict() for s in sorted(snapshots, key=lambda s: s.timestamp)]

    async def get_vault_historic_prices_range(
        self, chain: str, vault_address: str, period: str
    ) -> dict[str, int] | None:
        """First and last snapshot timestamps of ``period`` granularity.

        Returns ``None`` if no source knows the vault; a vault without
        snapshots reports ``0`` for both bounds.
        """
        period_seconds = get_period_seconds(period)
        self._registry.sources_for_chain(chain)
        vault = vault_address.lower()
        return await self._cache.wrap(
            f"vault-prices-range:{chain}:{vault}:{period}",
            self._ttl_ms,
            lambda: self._compute_prices_range(chain, vault, period_seconds),
        )

    async def _compute_prices_range(
        self, chain: str, vault: str, period_seconds: int
    ) -> dict[str, int] | None:
        found = await self._fetch_vault(
            chain,
            "vault price range",
            lambda c: c.vault_historic_prices_range(vault, period_seconds),
        )
        if not found:
            logger.info("Vault %s not found on %s", vault, chain)
            return None

        ranges = [parse_snapshot_range(raw) for raw in found]
        firsts = [first for first, _ in ranges if first]
        return {
            "min": min(firsts) if firsts else 0,
            "max": max(last for _, last in ranges),
        }

    # ------------------------------------------------------------------
    # Cross-chain summary
    # ------------------------------------------------------------------

    async def get_chain_apy(self, chain: str | None = None) -> list[dict[str, Any]]:
        """Trailing 24h APR/APY of every vault, on ``chain`` or on all chains.

        Built on the cached ``1d`` vault listings; a chain whose sources all
        fail fails the whole summary.
        """
        chains = [chain] if chain is not None else list(self._registry.chains)
        listings = await asyncio.gather(*(self.get_vaults(c, "1d") for c in chains))

        return [
            ChainVaultApy(
                chain=chain_name,
                vault_address=vault["vaultAddress"],
                apr=Decimal(vault["apr"]),
                apy=Decimal(vault["apy"]),
            ).to_dict()
            for chain_name, vaults in zip(chains, listings)
            for vault in vaults
        ]


def _combine_harvests(
    base: Iterable[VaultHarvest], extra: Iterable[VaultHarvest]
) -> tuple[VaultHarvest, ...]:
    """Union of two harvest lists by event id, ordered by timestamp."""
    return tuple(
        sorted(merge_unique(base, extra, key=lambda h: h.id), key=lambda h: h.timestamp)
    )
