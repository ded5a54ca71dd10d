"""Sequential skip/first pagination driver."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable, Sized, TypeVar

from ..interfaces.source_client import SourceClient

logger = logging.getLogger(__name__)

P = TypeVar("P")

DEFAULT_PAGE_SIZE = 1000
DEFAULT_FETCH_AT_MOST = 10_000


async def paginate(
    fetch_page: Callable[[int, int], Awaitable[P]],
    count: Callable[[P], int],
    page_size: int = DEFAULT_PAGE_SIZE,
    fetch_at_most: int = DEFAULT_FETCH_AT_MOST,
) -> list[P]:
    """Fetch pages until one comes back short or ``fetch_at_most`` is reached.

    ``fetch_page(skip, first)`` is called with ``skip`` = 0, page_size, ...
    and ``first`` = page_size. Pages are fetched one after another and
    returned in fetch order.
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    if fetch_at_most <= 0:
        raise ValueError(f"fetch_at_most must be positive, got {fetch_at_most}")

    pages: list[P] = []
    skip = 0
    fetched = 0

    while True:
        page = await fetch_page(skip, page_size)
        pages.append(page)

        page_count = count(page)
        fetched += page_count
        if page_count < page_size:
            break
        if fetched >= fetch_at_most:
            logger.warning(
                "Pagination stopped at fetch cap (%d items in %d pages)",
                fetched,
                len(pages),
            )
            break
        skip += page_size

    return pages


async def paginate_source_calls(
    client: SourceClient,
    call: Callable[[SourceClient, int, int], Awaitable[P]],
    count: Callable[[P], int],
    page_size: int = DEFAULT_PAGE_SIZE,
    fetch_at_most: int = DEFAULT_FETCH_AT_MOST,
) -> list[P]:
    """``paginate`` bound to one source client."""
    return await paginate(
        lambda skip, first: call(client, skip, first),
        count,
        page_size=page_size,
        fetch_at_most=fetch_at_most,
    )


def max_collection_size(collections: Iterable[Sized]) -> int:
    """Largest cardinality among collections paginated behind one cursor."""
    return max((len(c) for c in collections), default=0)


def max_child_count(
    parent_key: str, child_key: str
) -> Callable[[dict[str, Any]], int]:
    """Count for pages where every parent's child list shares one skip/first window.

    The page is exhausted only once every child list came back short.
    """

    def _count(page: dict[str, Any]) -> int:
        parents = page.get(parent_key) or []
        return max_collection_size(p.get(child_key) or [] for p in parents)

    return _count
