"""
Catalog API schemas: typed shapes for Shopify GraphQL responses.

Responses are validated once at the client boundary; a shape mismatch
becomes a single ResponseDecodeError instead of ad hoc dict traversal.
Nested fields are optional so the fetcher can skip incomplete variants
without rejecting the whole page.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Shape(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Variant list (read)
# ---------------------------------------------------------------------------

class InventoryQuantity(_Shape):
    name: str
    quantity: Optional[int] = None


class LocationRef(_Shape):
    id: Optional[str] = None
    name: Optional[str] = None


class InventoryLevelNode(_Shape):
    quantities: List[InventoryQuantity] = []
    location: Optional[LocationRef] = None

    def quantity(self, name: str) -> Optional[int]:
        for q in self.quantities:
            if q.name == name:
                return q.quantity
        return None

    def available(self) -> Optional[int]:
        return self.quantity("available")

    def on_hand(self) -> Optional[int]:
        return self.quantity("on_hand")


class InventoryLevelEdge(_Shape):
    node: Optional[InventoryLevelNode] = None


class InventoryLevelConnection(_Shape):
    edges: List[InventoryLevelEdge] = []


class InventoryItemNode(_Shape):
    id: Optional[str] = None
    tracked: bool = False
    inventoryLevels: Optional[InventoryLevelConnection] = None

    def levels(self) -> List[InventoryLevelNode]:
        if not self.inventoryLevels:
            return []
        return [edge.node for edge in self.inventoryLevels.edges if edge.node is not None]


class ProductRef(_Shape):
    id: Optional[str] = None
    title: Optional[str] = None


class VariantNode(_Shape):
    id: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[str] = None
    displayName: Optional[str] = None
    inventoryItem: Optional[InventoryItemNode] = None
    product: Optional[ProductRef] = None

    @field_validator("price", "sku", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class VariantEdge(_Shape):
    cursor: Optional[str] = None
    node: Optional[VariantNode] = None


class PageInfo(_Shape):
    hasNextPage: bool = False
    endCursor: Optional[str] = None


class VariantConnection(_Shape):
    edges: List[VariantEdge]
    pageInfo: PageInfo = Field(default_factory=PageInfo)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

class UserError(_Shape):
    field: Optional[Any] = None
    message: str = ""
    code: Optional[str] = None


class IdRef(_Shape):
    id: Optional[str] = None


class VariantPriceRef(_Shape):
    id: Optional[str] = None
    price: Optional[Any] = None


class VariantsBulkUpdatePayload(_Shape):
    productVariants: Optional[List[VariantPriceRef]] = None
    userErrors: List[UserError] = []


class InventorySetOnHandPayload(_Shape):
    inventoryAdjustmentGroup: Optional[IdRef] = None
    userErrors: List[UserError] = []


class LocationEdge(_Shape):
    node: Optional[LocationRef] = None


class LocationConnection(_Shape):
    edges: List[LocationEdge] = []


# ---------------------------------------------------------------------------
# Domain snapshot
# ---------------------------------------------------------------------------

class RemoteVariant(BaseModel):
    """In-memory snapshot of one Shopify variant for the current run."""
    id: str
    sku: Optional[str] = None
    price: Optional[str] = None
    tracked: bool = False
    current_quantity: Optional[int] = None
    display_name: Optional[str] = None
    inventory_item_id: str
    product_id: Optional[str] = None
    location_id: Optional[str] = None
    # on-hand units keyed by location GID, one entry per inventory level
    on_hand_by_location: Dict[str, Optional[int]] = Field(default_factory=dict)

    def quantity_at(self, location_id: Optional[str]) -> Optional[int]:
        """On-hand units at a location, or None when the item is not stocked there."""
        if not location_id:
            return None
        if location_id in self.on_hand_by_location:
            return self.on_hand_by_location[location_id]
        if location_id == self.location_id:
            return self.current_quantity
        return None

    @property
    def label(self) -> str:
        return f"{self.id} ({self.display_name or 'Unknown Product'})"
