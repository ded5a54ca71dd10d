"""Unit tests for the skip/first pagination driver."""
from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from vault_insights.sources.pagination import (
    max_child_count,
    max_collection_size,
    paginate,
    paginate_source_calls,
)


def _pages_of(total: int):
    """fetch_page returning list pages over ``total`` items."""
    calls: list[tuple[int, int]] = []

    async def fetch_page(skip: int, first: int) -> list[int]:
        calls.append((skip, first))
        return list(range(skip, min(skip + first, total)))

    return fetch_page, calls


class TestPaginate:
    @pytest.mark.asyncio
    async def test_stops_on_short_page(self) -> None:
        fetch_page, calls = _pages_of(25)
        pages = await paginate(fetch_page, len, page_size=10, fetch_at_most=1000)
        assert [len(p) for p in pages] == [10, 10, 5]
        assert calls == [(0, 10), (10, 10), (20, 10)]

    @pytest.mark.asyncio
    async def test_exact_multiple_fetches_one_empty_page(self) -> None:
        fetch_page, calls = _pages_of(20)
        pages = await paginate(fetch_page, len, page_size=10, fetch_at_most=1000)
        assert [len(p) for p in pages] == [10, 10, 0]
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_stops_at_fetch_cap(self, caplog: pytest.LogCaptureFixture) -> None:
        fetch_page, calls = _pages_of(10**9)
        with caplog.at_level(logging.WARNING):
            pages = await paginate(fetch_page, len, page_size=10, fetch_at_most=35)
        assert len(pages) == 4
        assert calls[-1] == (30, 10)
        assert "fetch cap" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_first_page(self) -> None:
        fetch_page, calls = _pages_of(0)
        pages = await paginate(fetch_page, len, page_size=10, fetch_at_most=100)
        assert pages == [[]]
        assert calls == [(0, 10)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_size, fetch_at_most", [(0, 10), (10, 0), (-1, 10)])
    async def test_rejects_non_positive_limits(self, page_size: int, fetch_at_most: int) -> None:
        fetch_page, _ = _pages_of(5)
        with pytest.raises(ValueError):
            await paginate(fetch_page, len, page_size=page_size, fetch_at_most=fetch_at_most)

    @pytest.mark.asyncio
    async def test_jointly_paginated_collections_use_max(self) -> None:
        """Keeps going while any collection still fills the page."""
        streams = {"a": list(range(3)), "b": list(range(12))}

        async def fetch_page(skip: int, first: int) -> dict[str, list[int]]:
            return {k: v[skip : skip + first] for k, v in streams.items()}

        pages = await paginate(
            fetch_page,
            lambda page: max_collection_size(page.values()),
            page_size=5,
            fetch_at_most=100,
        )
        assert len(pages) == 3
        assert sum(len(p["b"]) for p in pages) == 12


class TestPaginateSourceCalls:
    @pytest.mark.asyncio
    async def test_binds_client(self) -> None:
        client = AsyncMock()
        client.vaults = AsyncMock(side_effect=[{"clms": [{"collectedFees": [1, 2]}]}, {"clms": []}])

        pages = await paginate_source_calls(
            client,
            lambda c, skip, first: c.vaults(0, skip, first),
            max_child_count("clms", "collectedFees"),
            page_size=2,
            fetch_at_most=10,
        )

        assert len(pages) == 2
        client.vaults.assert_any_await(0, 0, 2)
        client.vaults.assert_any_await(0, 2, 2)


class TestCounts:
    def test_max_collection_size(self) -> None:
        assert max_collection_size([[1], [1, 2, 3], []]) == 3
        assert max_collection_size([]) == 0

    def test_max_child_count(self) -> None:
        count = max_child_count("clms", "collectedFees")
        page = {"clms": [{"collectedFees": [1]}, {"collectedFees": [1, 2]}, {}]}
        assert count(page) == 2
        assert count({}) == 0
