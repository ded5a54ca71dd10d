"""Subgraph GraphQL client: one instance per source."""
from __future__ import annotations

import functools
import logging
import ssl
from typing import Any, Awaitable, Callable, TypeVar

import aiohttp
import certifi

from ..errors import GraphQueryError
from ..models import SourceDescriptor
from . import queries

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def wrap_query_errors(method: F) -> F:
    """Re-raise any failure of a query method as ``GraphQueryError``."""

    @functools.wraps(method)
    async def wrapper(self: SubgraphClient, *args: Any, **kwargs: Any) -> Any:
        try:
            return await method(self, *args, **kwargs)
        except GraphQueryError:
            raise
        except Exception as e:
            logger.debug("%s.%s failed on %s: %s", type(self).__name__, method.__name__, self.source, e)
            raise GraphQueryError(e, source=self.source) from e

    return wrapper  # type: ignore[return-value]


class SubgraphClient:
    """Typed queries against one subgraph instance."""

    def __init__(self, source: SourceDescriptor, timeout: float = 30.0) -> None:
        self._source = source
        self.timeout = timeout

    @property
    def source(self) -> SourceDescriptor:
        return self._source

    async def execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST one GraphQL document and return its ``data`` object."""
        payload = {"query": query, "variables": variables}
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                self._source.url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    raise GraphQueryError(f"HTTP {response.status}", source=self._source)

                result = await response.json()
                if result.get("errors"):
                    message = result["errors"][0].get("message", "query failed")
                    raise GraphQueryError(message, source=self._source)

                data = result.get("data")
                if data is None:
                    raise GraphQueryError("response has no data", source=self._source)
                return data

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @wrap_query_errors
    async def investor_timeline(
        self, investor_address: str, skip: int, first: int
    ) -> dict[str, Any]:
        return await self.execute(
            queries.INVESTOR_TIMELINE,
            {
                "investor_address": investor_address.lower(),
                "skip": skip,
                "first": first,
            },
        )

    @wrap_query_errors
    async def vaults(self, since: int, skip: int, first: int) -> dict[str, Any]:
        return await self.execute(
            queries.VAULTS, {"since": str(since), "skip": skip, "first": first}
        )

    @wrap_query_errors
    async def vaults_harvests(
        self, since: int, vaults: list[str] | None = None
    ) -> dict[str, Any]:
        if vaults:
            return await self.execute(
                queries.VAULTS_HARVESTS_FILTERED,
                {"since": str(since), "vaults": [v.lower() for v in vaults]},
            )
        return await self.execute(queries.VAULTS_HARVESTS, {"since": str(since)})

    @wrap_query_errors
    async def vault_price(self, vault_address: str) -> dict[str, Any]:
        return await self.execute(queries.VAULT_PRICE, {"vault_address": vault_address.lower()})

    @wrap_query_errors
    async def vault_harvests(self, vault_address: str) -> dict[str, Any]:
        return await self.execute(queries.VAULT_HARVESTS, {"vault_address": vault_address.lower()})

    @wrap_query_errors
    async def vault_historic_prices(
        self, vault_address: str, period: int, since: int
    ) -> dict[str, Any]:
        return await self.execute(
            queries.VAULT_HISTORIC_PRICES,
            {"vault_address": vault_address.lower(), "period": str(period), "since": str(since)},
        )

    @wrap_query_errors
    async def vault_historic_prices_range(
        self, vault_address: str, period: int
    ) -> dict[str, Any]:
        return await self.execute(
            queries.VAULT_HISTORIC_PRICES_RANGE,
            {"vault_address": vault_address.lower(), "period": str(period)},
        )
