"""
DI container: wires clients and services for one sync run.

Everything stateful (rate limiter, location cache, HTTP client) is built
per run, so nothing outlives the run that created it. Only the settings
are cached, via get_settings().
"""
import httpx

from catalog_sync.clients.discount_source import DiscountSource
from catalog_sync.clients.feed_client import LocalFeedClient
from catalog_sync.clients.retrying_client import RetryingClient
from catalog_sync.clients.shopify_catalog_client import ShopifyCatalogClient
from catalog_sync.core.config import Settings
from catalog_sync.schemas.sync import ReconciliationPolicy, SyncMode, SyncType
from catalog_sync.services.catalog_fetcher import PaginatedCatalogFetcher
from catalog_sync.services.inventory_aggregator import InventoryAggregator
from catalog_sync.services.reconciliation_engine import ReconciliationEngine
from catalog_sync.services.sync_service import CatalogSyncService
from catalog_sync.utils.rate_limiter import TokenBucketRateLimiter


def build_policy(cfg: Settings) -> ReconciliationPolicy:
    return ReconciliationPolicy(
        mode=SyncMode(cfg.sync_mode),
        sync_type=SyncType(cfg.sync_type),
        location_id=None,
        dry_run=cfg.sync_dry_run,
        max_concurrency=cfg.sync_max_concurrency,
    )


def build_retrying_client(http: httpx.AsyncClient, cfg: Settings) -> RetryingClient:
    return RetryingClient(
        http,
        TokenBucketRateLimiter(rate=cfg.shopify_rate_limit),
        max_retries=cfg.max_retries,
        timeout=cfg.api_timeout_seconds,
        throttle_delay=cfg.throttle_delay,
    )


def build_sync_service(http: httpx.AsyncClient, cfg: Settings) -> CatalogSyncService:
    client = build_retrying_client(http, cfg)
    catalog = ShopifyCatalogClient(cfg, client)
    return CatalogSyncService(
        catalog=catalog,
        feeds=LocalFeedClient(client, cfg.data_api_url, cfg.inventory_api_url),
        fetcher=PaginatedCatalogFetcher(
            catalog,
            page_size=cfg.shopify_page_size,
            max_pages=cfg.shopify_max_pages,
            page_delay=cfg.shopify_page_delay,
        ),
        aggregator=InventoryAggregator(
            safety_stock=cfg.safety_stock,
            sku_mode=cfg.sku_normalization_mode,
            pad_width=cfg.sku_pad_width,
        ),
        engine=ReconciliationEngine(catalog, sku_mode=cfg.sku_normalization_mode, pad_width=cfg.sku_pad_width),
        discount_source=DiscountSource(cfg.discount_csv_path, client) if cfg.discount_csv_path else None,
        policy=build_policy(cfg),
        sku_mode=cfg.sku_normalization_mode,
        pad_width=cfg.sku_pad_width,
    )
