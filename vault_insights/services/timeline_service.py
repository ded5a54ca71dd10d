"""Investor timeline pipeline: fan-out, paginate, parse, merge, format."""
from __future__ import annotations

import logging
from typing import Any

from ..cache import AsyncCache
from ..config import AppConfig
from ..errors import AllSourcesFailedError
from ..models import PositionSnapshot, SourceDescriptor
from ..sources import SourceRegistry, execute_on_all_sources, paginate_source_calls
from ..sources.pagination import max_child_count
from ..sources.parser import parse_timeline_page
from ..timeline import format_interaction, get_merged_timeline

logger = logging.getLogger(__name__)

_clm_interactions = max_child_count("clmPositions", "interactions")
_classic_interactions = max_child_count("classicPositions", "interactions")


def timeline_page_count(page: dict[str, Any]) -> int:
    """Both position kinds share one interactions window."""
    return max(_clm_interactions(page), _classic_interactions(page))


class TimelineService:
    """Builds an investor's merged interaction timeline across every chain."""

    def __init__(
        self, registry: SourceRegistry, cache: AsyncCache, config: AppConfig
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._config = config

    async def get_investor_timeline(self, investor_address: str) -> list[dict[str, Any]]:
        """Formatted timeline for ``investor_address``, cached per investor.

        Raises:
            AllSourcesFailedError: no source answered.
            FanOutError: no sources are configured or the batch timed out.
        """
        key = f"timeline:{investor_address.lower()}"
        ttl_ms = self._config.cache.timeline_ttl_seconds * 1000
        return await self._cache.wrap(
            key, ttl_ms, lambda: self._build_timeline(investor_address)
        )

    async def _fetch_positions(
        self, source: SourceDescriptor, investor_address: str
    ) -> list[PositionSnapshot]:
        client = self._registry.client_for(source)
        pagination = self._config.pagination
        pages = await paginate_source_calls(
            client,
            lambda c, skip, first: c.investor_timeline(investor_address, skip, first),
            timeline_page_count,
            page_size=pagination.page_size,
            fetch_at_most=pagination.fetch_at_most,
        )

        positions: list[PositionSnapshot] = []
        for page in pages:
            positions.extend(parse_timeline_page(source.chain, page))
        logger.debug(
            "Fetched %d position snapshots from %s (%d pages)",
            len(positions),
            source,
            len(pages),
        )
        return positions

    async def _build_timeline(self, investor_address: str) -> list[dict[str, Any]]:
        outcome = await execute_on_all_sources(
            self._registry.all_sources(),
            lambda source: self._fetch_positions(source, investor_address),
            timeout=self._config.fan_out.timeout_seconds,
        )

        if outcome.errors:
            if not outcome.results:
                raise AllSourcesFailedError(outcome.errors)
            logger.warning(
                "Timeline for %s is missing %d of %d sources",
                investor_address,
                len(outcome.errors),
                len(outcome.errors) + len(outcome.results),
            )

        positions = [p for result in outcome.results for p in result.value]
        timeline = get_merged_timeline(positions)
        logger.info(
            "Timeline for %s: %d interactions from %d positions",
            investor_address,
            len(timeline),
            len(positions),
        )
        return [format_interaction(interaction) for interaction in timeline]
