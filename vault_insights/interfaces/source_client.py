"""Source client protocol: one typed method per subgraph query."""
from typing import Any, Protocol

from ..models import SourceDescriptor


class SourceClient(Protocol):
    """Abstract interface for querying one subgraph instance.

    Every method returns the query's ``data`` object; failures are raised as
    ``GraphQueryError`` carrying the source.
    """

    @property
    def source(self) -> SourceDescriptor: ...

    async def investor_timeline(
        self, investor_address: str, skip: int, first: int
    ) -> dict[str, Any]: ...

    async def vaults(self, since: int, skip: int, first: int) -> dict[str, Any]: ...

    async def vaults_harvests(
        self, since: int, vaults: list[str] | None = None
    ) -> dict[str, Any]: ...

    async def vault_price(self, vault_address: str) -> dict[str, Any]: ...

    async def vault_harvests(self, vault_address: str) -> dict[str, Any]: ...

    async def vault_historic_prices(
        self, vault_address: str, period: int, since: int
    ) -> dict[str, Any]: ...

    async def vault_historic_prices_range(
        self, vault_address: str, period: int
    ) -> dict[str, Any]: ...
