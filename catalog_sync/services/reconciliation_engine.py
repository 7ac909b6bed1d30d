"""
Reconciliation engine: joins local state with the remote catalog by SKU
and issues the minimal set of writes.

Flow per run:
1. Key remote variants and local products by normalized SKU
2. Pick the iteration set (remote keys for shopify_first, local keys for local_first)
3. Order discounted SKUs first
4. Fan out one task per item; each task diffs price and quantity and
   writes price first, then inventory
5. Fold the item results into RunStats once every task has finished
"""
import asyncio
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from catalog_sync.clients.shopify_catalog_client import ShopifyCatalogClient
from catalog_sync.core.constants.sync import DEFAULT_SKU_PAD_WIDTH, PROGRESS_LOG_INTERVAL
from catalog_sync.core.exceptions import CatalogSyncException
from catalog_sync.schemas.catalog import RemoteVariant
from catalog_sync.schemas.feeds import LocalProductRecord
from catalog_sync.schemas.inventory import AggregatedInventoryState
from catalog_sync.schemas.sync import (
    ItemOutcome,
    ItemResult,
    ReconciliationPolicy,
    RunStats,
    SyncMode,
)
from catalog_sync.services.discount_overlay import DiscountOverlay
from catalog_sync.utils.sku_normalizer import NUMERIC_STRICT, build_sku_map, lookup
from catalog_sync.utils.type_converters import to_price

logger = logging.getLogger("reconciliation_engine")


def canonical_price(value) -> Optional[str]:
    """Two-decimal string form used for price comparison ("100" and "100.0" both -> "100.00")."""
    price = to_price(value)
    return None if price is None else f"{price:.2f}"


class ReconciliationEngine:
    def __init__(
        self,
        catalog: ShopifyCatalogClient,
        sku_mode: str = NUMERIC_STRICT,
        pad_width: int = DEFAULT_SKU_PAD_WIDTH,
        progress_interval: int = PROGRESS_LOG_INTERVAL,
    ) -> None:
        self._catalog = catalog
        self._sku_mode = sku_mode
        self._pad_width = pad_width
        self._progress_interval = progress_interval

    async def run(
        self,
        local_products: Iterable[dict | LocalProductRecord],
        aggregated_inventory: Dict[str, AggregatedInventoryState],
        discounts: DiscountOverlay,
        remote_variants: Iterable[RemoteVariant],
        policy: ReconciliationPolicy,
    ) -> RunStats:
        stats = RunStats(mode=policy.mode, sync_type=policy.sync_type, dry_run=policy.dry_run)

        local_by_sku = build_sku_map(
            self._coerce_products(local_products),
            lambda p: p.sku,
            self._sku_mode,
            self._pad_width,
            source="local products",
        )
        remote_by_sku = build_sku_map(
            remote_variants,
            lambda v: v.sku,
            self._sku_mode,
            self._pad_width,
            source="catalog",
            describe=lambda v: v.label,
        )
        logger.info("matching: %s local SKUs, %s catalog SKUs", len(local_by_sku), len(remote_by_sku))

        items = self._ordered_items(local_by_sku, remote_by_sku, discounts, policy.mode)
        stats.total_items = len(items)
        if not items:
            logger.warning("nothing to reconcile")
            return stats

        logger.info(
            "reconciling %s items (mode=%s type=%s dry_run=%s)",
            len(items), policy.mode.value, policy.sync_type.value, policy.dry_run,
        )

        semaphore = asyncio.Semaphore(policy.max_concurrency) if policy.max_concurrency > 0 else None
        done = 0

        async def run_one(key: str, local, remote) -> ItemResult:
            nonlocal done
            try:
                if semaphore is None:
                    return await self._reconcile_item(key, local, remote, aggregated_inventory, discounts, policy)
                async with semaphore:
                    return await self._reconcile_item(key, local, remote, aggregated_inventory, discounts, policy)
            finally:
                done += 1
                if done % self._progress_interval == 0:
                    logger.info("progress: %s/%s items", done, len(items))

        results = await asyncio.gather(
            *(run_one(key, local, remote) for key, local, remote in items),
            return_exceptions=True,
        )

        for (key, _, _), result in zip(items, results):
            if isinstance(result, BaseException):
                logger.error("item %s failed unexpectedly: %s", key, result)
                stats.processed += 1
                stats.record_error(key, f"{type(result).__name__}: {result}")
            else:
                stats.record(result)
        return stats

    def _coerce_products(self, records: Iterable[dict | LocalProductRecord]) -> List[LocalProductRecord]:
        products: List[LocalProductRecord] = []
        for raw in records:
            if isinstance(raw, LocalProductRecord):
                products.append(raw)
                continue
            try:
                products.append(LocalProductRecord.model_validate(raw))
            except ValidationError:
                logger.warning("local products: unreadable record %r, skipping", raw)
        return products

    def _ordered_items(
        self,
        local_by_sku: Dict[str, LocalProductRecord],
        remote_by_sku: Dict[str, RemoteVariant],
        discounts: DiscountOverlay,
        mode: SyncMode,
    ) -> List[Tuple[str, Optional[LocalProductRecord], Optional[RemoteVariant]]]:
        if mode == SyncMode.LOCAL_FIRST:
            items = [
                (key, local, lookup(remote_by_sku, key, self._sku_mode, self._pad_width))
                for key, local in local_by_sku.items()
            ]
        else:
            items = [
                (key, lookup(local_by_sku, key, self._sku_mode, self._pad_width), remote)
                for key, remote in remote_by_sku.items()
            ]
        # stable sort: discounted SKUs first, feed order otherwise
        items.sort(key=lambda item: item[0] not in discounts)
        return items

    async def _reconcile_item(
        self,
        key: str,
        local: Optional[LocalProductRecord],
        remote: Optional[RemoteVariant],
        aggregated_inventory: Dict[str, AggregatedInventoryState],
        discounts: DiscountOverlay,
        policy: ReconciliationPolicy,
    ) -> ItemResult:
        if local is None:
            logger.debug("SKU %s not found locally, skipping %s", key, remote.label if remote else "")
            return ItemResult(sku=key, outcome=ItemOutcome.SKIPPED_NOT_FOUND_LOCAL, variant_id=remote.id if remote else None)
        if remote is None:
            logger.debug("SKU %s not found in the catalog, skipping", key)
            return ItemResult(sku=key, outcome=ItemOutcome.SKIPPED_NOT_FOUND_REMOTE)

        # inventory is compared and written at the same location
        location_id = policy.location_id or remote.location_id
        current_quantity = remote.quantity_at(location_id)
        result = ItemResult(
            sku=key,
            outcome=ItemOutcome.NO_CHANGE,
            variant_id=remote.id,
            price_before=remote.price,
            quantity_before=current_quantity,
        )

        target_price: Optional[Decimal] = None
        target_quantity: Optional[int] = None
        invalid_price = False
        if policy.sync_type.includes_price:
            target_price = discounts.effective_price(key, to_price(local.price))
            if target_price is None:
                invalid_price = True
                logger.warning("SKU %s: invalid local price %r, price not synced", key, local.price)
                result.messages.append("invalid local price")
        if policy.sync_type.includes_inventory:
            state = aggregated_inventory.get(key)
            if state is not None:
                target_quantity = state.published_quantity
            else:
                result.messages.append("no ledger quantity")

        if target_price is None and target_quantity is None:
            # a SKU missing from the ledger alone leaves inventory untouched
            result.outcome = ItemOutcome.SKIPPED_INVALID_LOCAL if invalid_price else ItemOutcome.NO_CHANGE
            return result

        price_change = target_price is not None and canonical_price(remote.price) != f"{target_price:.2f}"
        quantity_change = target_quantity is not None and target_quantity != current_quantity
        if quantity_change and not remote.tracked:
            logger.debug("SKU %s: inventory not tracked remotely, quantity left at %s", key, current_quantity)
            result.messages.append("inventory not tracked")
            quantity_change = False

        if price_change:
            result.price_after = f"{target_price:.2f}"
            await self._write_price(result, remote, result.price_after, policy.dry_run)
        if quantity_change:
            result.quantity_after = target_quantity
            await self._write_quantity(result, remote, target_quantity, location_id, policy.dry_run)

        result.outcome = self._outcome(result)
        return result

    async def _write_price(self, result: ItemResult, remote: RemoteVariant, price: str, dry_run: bool) -> None:
        if dry_run:
            logger.info("[dry run] %s: price %s -> %s", result.sku, remote.price, price)
            result.price_updated = True
            return
        if not remote.product_id:
            result.errors.append("price: variant has no product id")
            return
        try:
            await self._catalog.update_variant_price(remote.product_id, remote.id, price)
        except CatalogSyncException as exc:
            logger.error("SKU %s: price update failed for %s: %s", result.sku, remote.label, exc)
            result.errors.append(f"price: {exc}")
            return
        result.price_updated = True
        logger.info("SKU %s: price %s -> %s", result.sku, remote.price, price)

    async def _write_quantity(
        self,
        result: ItemResult,
        remote: RemoteVariant,
        quantity: int,
        location_id: Optional[str],
        dry_run: bool,
    ) -> None:
        if dry_run:
            logger.info("[dry run] %s: quantity %s -> %s", result.sku, result.quantity_before, quantity)
            result.inventory_updated = True
            return
        if not location_id:
            result.errors.append("inventory: no location to write to")
            return
        try:
            await self._catalog.set_on_hand_quantity(remote.inventory_item_id, location_id, quantity)
        except CatalogSyncException as exc:
            logger.error("SKU %s: inventory update failed for %s: %s", result.sku, remote.label, exc)
            result.errors.append(f"inventory: {exc}")
            return
        result.inventory_updated = True
        logger.info("SKU %s: quantity %s -> %s", result.sku, result.quantity_before, quantity)

    @staticmethod
    def _outcome(result: ItemResult) -> ItemOutcome:
        if result.errors:
            return ItemOutcome.ERROR
        if result.price_updated and result.inventory_updated:
            return ItemOutcome.BOTH_UPDATED
        if result.price_updated:
            return ItemOutcome.PRICE_UPDATED
        if result.inventory_updated:
            return ItemOutcome.INVENTORY_UPDATED
        return ItemOutcome.NO_CHANGE
