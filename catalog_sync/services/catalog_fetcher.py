import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from catalog_sync.clients.shopify_catalog_client import ShopifyCatalogClient
from catalog_sync.core.constants.sync import DEFAULT_PAGE_SIZE, MAX_PAGES
from catalog_sync.core.exceptions import CatalogSyncException, FetchError
from catalog_sync.schemas.catalog import RemoteVariant, VariantConnection, VariantNode

logger = logging.getLogger("catalog_fetcher")


class PaginatedCatalogFetcher:
    """
    Drains the remote variant list cursor by cursor.

    Stops when the API reports no next page, a page comes back empty, or
    the page ceiling is reached. Hitting the ceiling logs a warning and
    sets `truncated`.
    """

    def __init__(
        self,
        catalog: ShopifyCatalogClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = MAX_PAGES,
        page_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._catalog = catalog
        self._page_size = page_size
        self._max_pages = max_pages
        self._page_delay = page_delay
        self._sleep = sleep
        self.pages_fetched = 0
        self.skipped = 0
        self.truncated = False

    async def fetch_all(self) -> List[RemoteVariant]:
        variants: List[RemoteVariant] = []
        cursor: Optional[str] = None
        self.pages_fetched = 0
        self.skipped = 0
        self.truncated = False

        while True:
            if self.pages_fetched >= self._max_pages:
                self.truncated = True
                logger.warning(
                    "catalog fetch stopped at the %s page limit with more pages reported; "
                    "%s variants loaded, the rest of the catalog is not reconciled this run",
                    self._max_pages, len(variants),
                )
                break

            try:
                page = await self._catalog.fetch_variants_page(self._page_size, cursor)
            except CatalogSyncException as exc:
                raise FetchError(
                    f"Catalog fetch failed on page {self.pages_fetched + 1}: {exc}",
                    pages_fetched=self.pages_fetched,
                ) from exc

            self.pages_fetched += 1
            if not page.edges:
                logger.info("catalog page %s returned no variants, stopping", self.pages_fetched)
                break

            for edge in page.edges:
                variant = self._to_remote_variant(edge.node)
                if variant is not None:
                    variants.append(variant)

            logger.info("catalog page %s: %s variants (total %s)", self.pages_fetched, len(page.edges), len(variants))

            if not page.pageInfo.hasNextPage:
                break
            cursor = self._next_cursor(page)
            if not cursor:
                logger.warning("catalog page %s reported more pages but gave no cursor, stopping", self.pages_fetched)
                break
            if self._page_delay > 0:
                await self._sleep(self._page_delay)

        if self.skipped:
            logger.warning("catalog fetch skipped %s incomplete variants", self.skipped)
        logger.info("catalog fetch complete: %s variants in %s pages", len(variants), self.pages_fetched)
        return variants

    @staticmethod
    def _next_cursor(page: VariantConnection) -> Optional[str]:
        last = page.edges[-1].cursor
        return last or page.pageInfo.endCursor

    def _to_remote_variant(self, node: Optional[VariantNode]) -> Optional[RemoteVariant]:
        if node is None or not node.id:
            self.skipped += 1
            logger.warning("catalog: variant without an id, skipping")
            return None
        item = node.inventoryItem
        if item is None or not item.id:
            self.skipped += 1
            logger.warning("catalog: variant %s has no inventory item, skipping", node.id)
            return None

        levels = item.levels()
        on_hand_by_location = {
            lvl.location.id: lvl.on_hand() for lvl in levels if lvl.location and lvl.location.id
        }
        level = levels[0] if levels else None
        return RemoteVariant(
            id=node.id,
            sku=node.sku,
            price=node.price,
            tracked=item.tracked,
            current_quantity=level.on_hand() if level else None,
            display_name=node.displayName or (node.product.title if node.product else None),
            inventory_item_id=item.id,
            product_id=node.product.id if node.product else None,
            location_id=level.location.id if level and level.location else None,
            on_hand_by_location=on_hand_by_location,
        )
