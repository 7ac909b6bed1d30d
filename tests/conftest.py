"""
Pytest configuration and shared fixtures for catalog sync tests.

Provides settings, a mock Catalog API client, a no-wait rate limiter and
sample remote variants / feed records.
Version: 1.0.0
"""
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from catalog_sync.core.config import Settings
from catalog_sync.schemas.catalog import RemoteVariant
from catalog_sync.schemas.sync import ReconciliationPolicy, SyncMode, SyncType
from catalog_sync.utils.rate_limiter import TokenBucketRateLimiter


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    """Fully populated settings, independent of the process environment."""
    return Settings(
        shopify_store_domain="test-store",
        shopify_admin_api_token="shpat_test",
        shopify_api_version="2024-10",
        shopify_location_id=None,
        data_api_url="https://erp.example.com/products",
        inventory_api_url="https://erp.example.com/ledger",
        discount_csv_path=None,
        shopify_rate_limit=2.0,
        max_retries=3,
        api_timeout_ms=60000,
        throttle_delay=5.0,
        sync_mode="shopify_first",
        sync_type="both",
        sync_dry_run=False,
        sync_max_concurrency=25,
        safety_stock=3,
        sku_normalization_mode="numeric_strict",
        sku_pad_width=5,
        shopify_page_size=100,
        shopify_max_pages=500,
        shopify_page_delay=0.0,
    )


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------

class FakeClock:
    """Manually advanced monotonic clock; sleep() advances it instead of waiting."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorded_sleep():
    """AsyncMock stand-in for asyncio.sleep that records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def fast_limiter() -> TokenBucketRateLimiter:
    """A limiter with enough capacity that tests never wait on it."""
    return TokenBucketRateLimiter(rate=1000, capacity=1000)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_catalog():
    """Mock ShopifyCatalogClient with successful writes."""
    catalog = MagicMock()
    catalog.update_variant_price = AsyncMock(return_value=None)
    catalog.set_on_hand_quantity = AsyncMock(return_value=None)
    catalog.get_active_location_id = AsyncMock(return_value="gid://shopify/Location/1")
    catalog.fetch_variants_page = AsyncMock()
    return catalog


def make_variant(
    sku: Optional[str] = "123",
    price: Optional[str] = "100.00",
    quantity: Optional[int] = 10,
    tracked: bool = True,
    variant_id: str = "gid://shopify/ProductVariant/1",
    product_id: Optional[str] = "gid://shopify/Product/1",
) -> RemoteVariant:
    return RemoteVariant(
        id=variant_id,
        sku=sku,
        price=price,
        tracked=tracked,
        current_quantity=quantity,
        display_name=f"Widget {sku}",
        inventory_item_id=variant_id.replace("ProductVariant", "InventoryItem"),
        product_id=product_id,
        location_id="gid://shopify/Location/1",
    )


@pytest.fixture
def variant_factory():
    return make_variant


@pytest.fixture
def policy() -> ReconciliationPolicy:
    return ReconciliationPolicy(
        mode=SyncMode.SHOPIFY_FIRST,
        sync_type=SyncType.BOTH,
        location_id="gid://shopify/Location/1",
    )


# ---------------------------------------------------------------------------
# Sample feed data
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_products():
    return [
        {"CodigoProducto": "00123", "Venta1": 100.0, "Descripcion": "Widget"},
        {"CodigoProducto": "456", "Venta1": "25.50", "Descripcion": "Gadget"},
    ]


@pytest.fixture
def sample_ledger():
    return [
        {"CodigoProducto": "123", "Fecha": "2024-01-01T00:00:00Z",
         "CantidadInicial": 1, "CantidadEntradas": 0, "CantidadSalidas": 0},
        {"CodigoProducto": "123", "Fecha": "2024-02-01T00:00:00Z",
         "CantidadInicial": 5, "CantidadEntradas": 3, "CantidadSalidas": 1},
        {"CodigoProducto": "456", "Fecha": "2024-02-01T00:00:00Z",
         "CantidadInicial": 2, "CantidadEntradas": 0, "CantidadSalidas": 0},
    ]
