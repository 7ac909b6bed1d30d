"""
Inventory schemas: the per-SKU result of ledger aggregation.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AggregatedInventoryState(BaseModel):
    """Most recent ledger snapshot for one SKU and the quantities derived from it."""
    model_config = ConfigDict(frozen=True)

    sku: str
    raw_sku: str
    timestamp: datetime
    initial: float
    received: float
    shipped: float
    calculated_quantity: int
    published_quantity: int
    entry_count: int = 1
