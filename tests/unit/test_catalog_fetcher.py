"""
Unit tests for PaginatedCatalogFetcher termination, cursors and skipping.

Version: 1.0.0
"""
import logging
from unittest.mock import AsyncMock

import pytest

from catalog_sync.core.exceptions import FetchError, TransientClientError
from catalog_sync.schemas.catalog import VariantConnection
from catalog_sync.services.catalog_fetcher import PaginatedCatalogFetcher


pytestmark = pytest.mark.unit


def _level(location, on_hand, available=None):
    return {"node": {
        "quantities": [
            {"name": "available", "quantity": on_hand if available is None else available},
            {"name": "on_hand", "quantity": on_hand},
        ],
        "location": {"id": f"gid://shopify/Location/{location}"},
    }}


def _edge(n, cursor=None, inventory_item=True, tracked=True, qty=5, levels=None):
    node = {
        "id": f"gid://shopify/ProductVariant/{n}",
        "sku": str(n),
        "price": "10.00",
        "displayName": f"Item {n}",
        "product": {"id": f"gid://shopify/Product/{n}", "title": f"Item {n}"},
    }
    if inventory_item:
        node["inventoryItem"] = {
            "id": f"gid://shopify/InventoryItem/{n}",
            "tracked": tracked,
            "inventoryLevels": {"edges": levels if levels is not None else [_level(1, qty)]},
        }
    return {"cursor": cursor or f"cur{n}", "node": node}


def _page(edges, has_next, end_cursor=None):
    return VariantConnection.model_validate({
        "edges": edges,
        "pageInfo": {"hasNextPage": has_next, "endCursor": end_cursor},
    })


def _make_fetcher(mock_catalog, pages, **kwargs):
    mock_catalog.fetch_variants_page = AsyncMock(side_effect=pages)
    sleep = AsyncMock()
    fetcher = PaginatedCatalogFetcher(mock_catalog, page_size=2, sleep=sleep, **kwargs)
    return fetcher, sleep


class TestFetchAll:

    @pytest.mark.asyncio
    async def test_follows_last_edge_cursor_until_no_next_page(self, mock_catalog):
        pages = [
            _page([_edge(1), _edge(2, cursor="after-2")], True, end_cursor="ignored"),
            _page([_edge(3)], False),
        ]
        fetcher, _ = _make_fetcher(mock_catalog, pages)

        variants = await fetcher.fetch_all()

        assert [v.sku for v in variants] == ["1", "2", "3"]
        calls = mock_catalog.fetch_variants_page.await_args_list
        assert [c.args for c in calls] == [(2, None), (2, "after-2")]
        assert fetcher.pages_fetched == 2
        assert fetcher.truncated is False

    @pytest.mark.asyncio
    async def test_maps_remote_variant_fields(self, mock_catalog):
        fetcher, _ = _make_fetcher(mock_catalog, [_page([_edge(7, tracked=False, qty=3)], False)])

        variant = (await fetcher.fetch_all())[0]

        assert variant.id == "gid://shopify/ProductVariant/7"
        assert variant.inventory_item_id == "gid://shopify/InventoryItem/7"
        assert variant.product_id == "gid://shopify/Product/7"
        assert variant.tracked is False
        assert variant.current_quantity == 3
        assert variant.location_id == "gid://shopify/Location/1"
        assert variant.display_name == "Item 7"

    @pytest.mark.asyncio
    async def test_current_quantity_is_on_hand_not_available(self, mock_catalog):
        edge = _edge(3, levels=[_level(1, on_hand=7, available=5)])
        fetcher, _ = _make_fetcher(mock_catalog, [_page([edge], False)])

        variant = (await fetcher.fetch_all())[0]

        assert variant.current_quantity == 7
        assert variant.quantity_at("gid://shopify/Location/1") == 7

    @pytest.mark.asyncio
    async def test_keeps_on_hand_for_every_location(self, mock_catalog):
        edge = _edge(4, levels=[_level("A", on_hand=10), _level("B", on_hand=2)])
        fetcher, _ = _make_fetcher(mock_catalog, [_page([edge], False)])

        variant = (await fetcher.fetch_all())[0]

        assert variant.location_id == "gid://shopify/Location/A"
        assert variant.on_hand_by_location == {
            "gid://shopify/Location/A": 10,
            "gid://shopify/Location/B": 2,
        }
        assert variant.quantity_at("gid://shopify/Location/B") == 2
        assert variant.quantity_at("gid://shopify/Location/C") is None

    @pytest.mark.asyncio
    async def test_variant_without_levels_has_unknown_quantity(self, mock_catalog):
        fetcher, _ = _make_fetcher(mock_catalog, [_page([_edge(5, levels=[])], False)])

        variant = (await fetcher.fetch_all())[0]

        assert variant.current_quantity is None
        assert variant.location_id is None
        assert variant.on_hand_by_location == {}

    @pytest.mark.asyncio
    async def test_empty_page_stops(self, mock_catalog):
        fetcher, _ = _make_fetcher(mock_catalog, [_page([], True, end_cursor="x")])
        assert await fetcher.fetch_all() == []
        assert mock_catalog.fetch_variants_page.await_count == 1

    @pytest.mark.asyncio
    async def test_page_ceiling_warns_and_truncates(self, mock_catalog, caplog):
        pages = [_page([_edge(i)], True) for i in range(1, 10)]
        fetcher, _ = _make_fetcher(mock_catalog, pages, max_pages=3)

        with caplog.at_level(logging.WARNING):
            variants = await fetcher.fetch_all()

        assert len(variants) == 3
        assert fetcher.truncated is True
        assert mock_catalog.fetch_variants_page.await_count == 3
        assert "page limit" in caplog.text

    @pytest.mark.asyncio
    async def test_incomplete_variants_skipped(self, mock_catalog, caplog):
        edges = [_edge(1), _edge(2, inventory_item=False), {"cursor": "c", "node": None}]
        fetcher, _ = _make_fetcher(mock_catalog, [_page(edges, False)])

        with caplog.at_level(logging.WARNING):
            variants = await fetcher.fetch_all()

        assert [v.sku for v in variants] == ["1"]
        assert fetcher.skipped == 2
        assert "has no inventory item" in caplog.text

    @pytest.mark.asyncio
    async def test_falls_back_to_end_cursor(self, mock_catalog):
        edge = _edge(1)
        edge["cursor"] = None
        pages = [_page([edge], True, end_cursor="end-1"), _page([_edge(2)], False)]
        fetcher, _ = _make_fetcher(mock_catalog, pages)

        await fetcher.fetch_all()

        assert mock_catalog.fetch_variants_page.await_args_list[1].args == (2, "end-1")

    @pytest.mark.asyncio
    async def test_pauses_between_pages(self, mock_catalog):
        pages = [_page([_edge(1)], True), _page([_edge(2)], True), _page([_edge(3)], False)]
        fetcher, sleep = _make_fetcher(mock_catalog, pages, page_delay=0.25)

        await fetcher.fetch_all()

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)

    @pytest.mark.asyncio
    async def test_client_failure_becomes_fetch_error(self, mock_catalog):
        pages = [_page([_edge(1)], True), TransientClientError("down", status_code=503, attempts=4)]
        fetcher, _ = _make_fetcher(mock_catalog, pages)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch_all()
        assert exc_info.value.pages_fetched == 1
