"""
Catalog sync service: one end-to-end reconciliation run.

Setup (any failure here aborts the run with SetupError):
1. Load discounts (never fatal)
2. Resolve the inventory location (inventory runs only)
3. Fetch the price feed, the ledger and the remote catalog concurrently
4. Aggregate the ledger

Then hand everything to the ReconciliationEngine and log the summary.
Version: 1.0.0
"""
import asyncio
import logging
import time
from typing import List, Optional

from catalog_sync.clients.discount_source import DiscountSource
from catalog_sync.clients.feed_client import LocalFeedClient
from catalog_sync.clients.shopify_catalog_client import ShopifyCatalogClient
from catalog_sync.core.exceptions import CatalogSyncException, SetupError
from catalog_sync.schemas.sync import ReconciliationPolicy, RunStats
from catalog_sync.services.catalog_fetcher import PaginatedCatalogFetcher
from catalog_sync.services.discount_overlay import DiscountOverlay
from catalog_sync.services.inventory_aggregator import InventoryAggregator
from catalog_sync.services.reconciliation_engine import ReconciliationEngine
from catalog_sync.services.run_report import log_run_summary

logger = logging.getLogger("sync_service")


class CatalogSyncService:
    def __init__(
        self,
        catalog: ShopifyCatalogClient,
        feeds: LocalFeedClient,
        fetcher: PaginatedCatalogFetcher,
        aggregator: InventoryAggregator,
        engine: ReconciliationEngine,
        discount_source: Optional[DiscountSource],
        policy: ReconciliationPolicy,
        sku_mode: str,
        pad_width: int,
    ) -> None:
        self._catalog = catalog
        self._feeds = feeds
        self._fetcher = fetcher
        self._aggregator = aggregator
        self._engine = engine
        self._discount_source = discount_source
        self._policy = policy
        self._sku_mode = sku_mode
        self._pad_width = pad_width

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    async def run(self) -> RunStats:
        started = time.monotonic()
        policy = self._policy
        logger.info(
            "sync started mode=%s type=%s dry_run=%s",
            policy.mode.value, policy.sync_type.value, policy.dry_run,
        )

        discounts = await DiscountOverlay.load(self._discount_source, self._sku_mode, self._pad_width)

        if policy.sync_type.includes_inventory:
            policy = policy.model_copy(update={"location_id": await self._resolve_location()})

        products, ledger, variants = await self._fetch_sources(policy)
        aggregated = self._aggregator.aggregate(ledger) if policy.sync_type.includes_inventory else {}

        stats = await self._engine.run(products, aggregated, discounts, variants, policy)
        stats.duration_seconds = round(time.monotonic() - started, 2)
        log_run_summary(stats)
        return stats

    async def _resolve_location(self) -> str:
        try:
            location_id = await self._catalog.get_active_location_id()
        except CatalogSyncException as exc:
            raise SetupError(f"Could not look up the inventory location: {exc}") from exc
        if not location_id:
            raise SetupError("No active location found; inventory cannot be synced")
        logger.info("inventory location=%s", location_id)
        return location_id

    async def _fetch_sources(self, policy: ReconciliationPolicy) -> tuple[List[dict], List[dict], list]:
        async def no_ledger() -> List[dict]:
            return []

        ledger_fetch = self._feeds.fetch_ledger() if policy.sync_type.includes_inventory else no_ledger()
        try:
            products, ledger, variants = await asyncio.gather(
                self._feeds.fetch_products(),
                ledger_fetch,
                self._fetcher.fetch_all(),
            )
        except SetupError:
            raise
        except CatalogSyncException as exc:
            raise SetupError(f"Could not load sync inputs: {exc}") from exc
        logger.info(
            "inputs loaded: %s local products, %s ledger entries, %s catalog variants",
            len(products), len(ledger), len(variants),
        )
        return products, ledger, variants
