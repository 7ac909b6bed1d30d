"""
Sync schemas: policy, per-item results and the run summary.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SyncMode(str, Enum):
    LOCAL_FIRST = "local_first"
    SHOPIFY_FIRST = "shopify_first"


class SyncType(str, Enum):
    PRICE = "price"
    INVENTORY = "inventory"
    BOTH = "both"

    @property
    def includes_price(self) -> bool:
        return self in (SyncType.PRICE, SyncType.BOTH)

    @property
    def includes_inventory(self) -> bool:
        return self in (SyncType.INVENTORY, SyncType.BOTH)


class ItemOutcome(str, Enum):
    PRICE_UPDATED = "price_updated"
    INVENTORY_UPDATED = "inventory_updated"
    BOTH_UPDATED = "both_updated"
    NO_CHANGE = "no_change"
    SKIPPED_NOT_FOUND_LOCAL = "skipped_not_found_local"
    SKIPPED_NOT_FOUND_REMOTE = "skipped_not_found_remote"
    SKIPPED_INVALID_LOCAL = "skipped_invalid_local"
    ERROR = "error"


class ReconciliationPolicy(BaseModel):
    mode: SyncMode = SyncMode.SHOPIFY_FIRST
    sync_type: SyncType = SyncType.BOTH
    location_id: Optional[str] = None
    dry_run: bool = False
    max_concurrency: int = 25


class ItemResult(BaseModel):
    """What happened to one reconciliation item."""
    sku: str
    outcome: ItemOutcome
    variant_id: Optional[str] = None
    price_before: Optional[str] = None
    price_after: Optional[str] = None
    quantity_before: Optional[int] = None
    quantity_after: Optional[int] = None
    price_updated: bool = False
    inventory_updated: bool = False
    messages: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class ItemError(BaseModel):
    sku: str
    error: str


class RunStats(BaseModel):
    """Outcome counts for one run. Filled by a single writer after all items finish."""
    mode: SyncMode = SyncMode.SHOPIFY_FIRST
    sync_type: SyncType = SyncType.BOTH
    dry_run: bool = False
    total_items: int = 0
    processed: int = 0
    price_updates: int = 0
    inventory_updates: int = 0
    both_updates: int = 0
    no_change: int = 0
    not_found_local: int = 0
    not_found_remote: int = 0
    invalid_local: int = 0
    errors: int = 0
    duration_seconds: float = 0.0
    error_details: List[ItemError] = Field(default_factory=list)

    @property
    def total_updated(self) -> int:
        return self.price_updates + self.inventory_updates + self.both_updates

    @property
    def has_issues(self) -> bool:
        return self.errors > 0 or self.invalid_local > 0

    def record(self, result: ItemResult) -> None:
        self.processed += 1
        outcome = result.outcome
        if outcome == ItemOutcome.PRICE_UPDATED:
            self.price_updates += 1
        elif outcome == ItemOutcome.INVENTORY_UPDATED:
            self.inventory_updates += 1
        elif outcome == ItemOutcome.BOTH_UPDATED:
            self.both_updates += 1
        elif outcome == ItemOutcome.NO_CHANGE:
            self.no_change += 1
        elif outcome == ItemOutcome.SKIPPED_NOT_FOUND_LOCAL:
            self.not_found_local += 1
        elif outcome == ItemOutcome.SKIPPED_NOT_FOUND_REMOTE:
            self.not_found_remote += 1
        elif outcome == ItemOutcome.SKIPPED_INVALID_LOCAL:
            self.invalid_local += 1
        else:
            self.record_error(result.sku, "; ".join(result.errors) or "unknown error")

    def record_error(self, sku: str, error: str) -> None:
        self.errors += 1
        self.error_details.append(ItemError(sku=sku, error=error))
