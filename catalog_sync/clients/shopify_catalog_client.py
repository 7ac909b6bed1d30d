import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from catalog_sync.clients.retrying_client import RetryingClient
from catalog_sync.core.config import Settings
from catalog_sync.core.constants.sync import INVENTORY_LEVELS_PER_ITEM, INVENTORY_SET_REASON
from catalog_sync.core.exceptions import (
    MutationError,
    ResponseDecodeError,
    SetupError,
)
from catalog_sync.schemas.catalog import (
    InventorySetOnHandPayload,
    LocationConnection,
    VariantConnection,
    VariantsBulkUpdatePayload,
)

logger = logging.getLogger("shopify_catalog_client")

VARIANTS_PAGE_QUERY = """
    query VariantsPage($first: Int!, $after: String, $levels: Int!) {
        productVariants(first: $first, after: $after) {
            edges {
                cursor
                node {
                    id
                    sku
                    price
                    displayName
                    product { id title }
                    inventoryItem {
                        id
                        tracked
                        inventoryLevels(first: $levels) {
                            edges {
                                node {
                                    quantities(names: ["available", "on_hand"]) { name quantity }
                                    location { id name }
                                }
                            }
                        }
                    }
                }
            }
            pageInfo { hasNextPage endCursor }
        }
    }
"""

VARIANTS_BULK_UPDATE_MUTATION = """
    mutation VariantPriceUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
        productVariantsBulkUpdate(productId: $productId, variants: $variants) {
            productVariants { id price }
            userErrors { field message }
        }
    }
"""

INVENTORY_SET_ON_HAND_MUTATION = (
    "mutation InventorySetOnHand($input: InventorySetOnHandQuantitiesInput!) { "
    "inventorySetOnHandQuantities(input: $input) { "
    "inventoryAdjustmentGroup { id } userErrors { field message code } } }"
)

ACTIVE_LOCATION_QUERY = """
    query ActiveLocation {
        locations(first: 1, query: "status:active") {
            edges { node { id name } }
        }
    }
"""


class ShopifyCatalogClient:
    """
    Catalog API client: variant pages, price writes, on-hand writes and
    the active location lookup. All calls go through the shared
    RetryingClient so they are rate limited and retried uniformly.
    """

    def __init__(self, settings: Settings, retrying_client: RetryingClient) -> None:
        raw_domain = settings.shopify_store_domain
        self._store_domain = self._normalize_store_domain(raw_domain)
        self._token = settings.shopify_admin_api_token
        self._api_version = settings.shopify_api_version
        self._location_override = settings.shopify_location_id or None
        self._location_id: Optional[str] = None
        self._client = retrying_client
        logger.info(
            "ShopifyCatalogClient initialized: domain=%s (raw: %s) api_version=%s",
            self._store_domain, raw_domain, self._api_version,
        )

    @staticmethod
    def _normalize_store_domain(domain: Optional[str]) -> Optional[str]:
        """
        Normalize Shopify store domain to ensure it has .myshopify.com suffix.

        - "my-store" -> "my-store.myshopify.com"
        - "https://my-store.myshopify.com/" -> "my-store.myshopify.com"
        """
        if not domain:
            return domain
        domain = domain.replace("https://", "").replace("http://", "")
        domain = domain.rstrip("/")
        if not domain.endswith(".myshopify.com"):
            domain = f"{domain}.myshopify.com"
        return domain

    @staticmethod
    def to_gid(entity: str, value: str | int) -> str:
        if isinstance(value, str) and value.startswith("gid://"):
            return value
        return f"gid://shopify/{entity}/{value}"

    @property
    def graphql_url(self) -> str:
        if not self._store_domain or not self._token:
            raise SetupError("Shopify store domain or admin API token missing")
        return f"https://{self._store_domain}/admin/api/{self._api_version}/graphql.json"

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": self._token or "",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._client.call_graphql(
            self.graphql_url, query, variables=variables, headers=self._headers()
        )

    @staticmethod
    def _decode(model: type[BaseModel], data: Dict[str, Any], key: str) -> Any:
        raw = data.get(key)
        if raw is None:
            raise ResponseDecodeError(key, "field missing from response data")
        try:
            return model.model_validate(raw)
        except ValidationError as exc:
            raise ResponseDecodeError(key, exc.errors()) from exc

    async def fetch_variants_page(self, first: int, after: Optional[str] = None) -> VariantConnection:
        """Fetch one page of variants (`first` per page) starting after `after`."""
        variables = {"first": first, "after": after, "levels": INVENTORY_LEVELS_PER_ITEM}
        data = await self._graphql(VARIANTS_PAGE_QUERY, variables)
        return self._decode(VariantConnection, data, "productVariants")

    async def update_variant_price(self, product_id: str, variant_id: str, price: Decimal | str) -> None:
        variables = {
            "productId": self.to_gid("Product", product_id),
            "variants": [{"id": self.to_gid("ProductVariant", variant_id), "price": str(price)}],
        }
        logger.debug("shopify price update variant_id=%s price=%s", variant_id, price)
        data = await self._graphql(VARIANTS_BULK_UPDATE_MUTATION, variables)
        payload = self._decode(VariantsBulkUpdatePayload, data, "productVariantsBulkUpdate")
        if payload.userErrors:
            raise MutationError(
                "productVariantsBulkUpdate",
                [e.model_dump() for e in payload.userErrors],
            )

    async def set_on_hand_quantity(self, inventory_item_id: str, location_id: str, quantity: int) -> None:
        variables = {
            "input": {
                "reason": INVENTORY_SET_REASON,
                "setQuantities": [
                    {
                        "inventoryItemId": self.to_gid("InventoryItem", inventory_item_id),
                        "locationId": self.to_gid("Location", location_id),
                        "quantity": int(quantity),
                    }
                ],
            }
        }
        logger.debug(
            "shopify on-hand update inventory_item_id=%s location_id=%s qty=%s",
            inventory_item_id, location_id, quantity,
        )
        data = await self._graphql(INVENTORY_SET_ON_HAND_MUTATION, variables)
        payload = self._decode(InventorySetOnHandPayload, data, "inventorySetOnHandQuantities")
        if payload.userErrors:
            raise MutationError(
                "inventorySetOnHandQuantities",
                [e.model_dump() for e in payload.userErrors],
            )

    async def get_active_location_id(self) -> Optional[str]:
        """
        Resolve the location inventory writes target.

        A configured LOCATION_ID wins; otherwise the first active location
        is queried once and cached. Returns None when the shop has none.
        """
        if self._location_override:
            return self.to_gid("Location", self._location_override)
        if self._location_id:
            return self._location_id

        data = await self._graphql(ACTIVE_LOCATION_QUERY)
        connection = self._decode(LocationConnection, data, "locations")
        for edge in connection.edges:
            if edge.node and edge.node.id:
                self._location_id = edge.node.id
                logger.info("shopify active location id=%s name=%s", edge.node.id, edge.node.name)
                return self._location_id
        logger.warning("shopify returned no active locations")
        return None
