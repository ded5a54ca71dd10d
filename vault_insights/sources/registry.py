"""Source descriptors built once from config, plus one cached client per source."""
from __future__ import annotations

from typing import Callable

from ..config import AppConfig
from ..interfaces.source_client import SourceClient
from ..models import SourceDescriptor
from .subgraph import SubgraphClient

ClientFactory = Callable[[SourceDescriptor], SourceClient]


class SourceRegistry:
    """Maps chains to their source descriptors and hands out clients."""

    def __init__(
        self,
        config: AppConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        timeout = config.fan_out.timeout_seconds
        self._client_factory: ClientFactory = client_factory or (
            lambda source: SubgraphClient(source, timeout=timeout)
        )
        self._by_chain: dict[str, tuple[SourceDescriptor, ...]] = {
            chain: tuple(
                SourceDescriptor(chain=chain, name=s.name, tag=s.tag, url=s.url)
                for s in chain_cfg.subgraphs
            )
            for chain, chain_cfg in config.chains.items()
        }
        self._clients: dict[SourceDescriptor, SourceClient] = {}

    @property
    def chains(self) -> tuple[str, ...]:
        return tuple(self._by_chain)

    def all_sources(self) -> tuple[SourceDescriptor, ...]:
        return tuple(s for sources in self._by_chain.values() for s in sources)

    def sources_for_chain(self, chain: str) -> tuple[SourceDescriptor, ...]:
        if chain not in self._by_chain:
            raise ValueError(f"Unknown chain: {chain}")
        return self._by_chain[chain]

    def client_for(self, source: SourceDescriptor) -> SourceClient:
        client = self._clients.get(source)
        if client is None:
            client = self._client_factory(source)
            self._clients[source] = client
        return client
