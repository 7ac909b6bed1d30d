"""
Inventory aggregator: reduces the ledger to one on-hand quantity per SKU.

For each normalized SKU:
1. Pick the most recent entry by timestamp (unparseable dates count as
   older than any dated entry; on a tie the first entry seen wins)
2. calculated = floor(max(0, initial + received - shipped))
3. published = 0 if calculated <= safety stock, else calculated

A SKU whose most recent entry has a non-numeric quantity is left out of
the result. Callers treat a missing SKU as "leave inventory alone".
"""
import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from catalog_sync.core.constants.sync import DEFAULT_SAFETY_STOCK, DEFAULT_SKU_PAD_WIDTH
from catalog_sync.schemas.feeds import LedgerEntry
from catalog_sync.schemas.inventory import AggregatedInventoryState
from catalog_sync.utils.sku_normalizer import NUMERIC_STRICT, normalize
from catalog_sync.utils.type_converters import UNDATED, to_quantity, to_timestamp

logger = logging.getLogger("inventory_aggregator")


def calculate_quantity(initial: float, received: float, shipped: float) -> int:
    return math.floor(max(0.0, initial + received - shipped))


def published_quantity(calculated: int, safety_stock: int) -> int:
    """Units at or below the safety-stock threshold are held back from the remote catalog."""
    if calculated <= safety_stock:
        return 0
    return calculated


class InventoryAggregator:
    def __init__(
        self,
        safety_stock: int = DEFAULT_SAFETY_STOCK,
        sku_mode: str = NUMERIC_STRICT,
        pad_width: int = DEFAULT_SKU_PAD_WIDTH,
    ) -> None:
        if safety_stock < 0:
            raise ValueError("safety_stock cannot be negative")
        self.safety_stock = safety_stock
        self.sku_mode = sku_mode
        self.pad_width = pad_width

    def aggregate(self, entries: Iterable[dict | LedgerEntry]) -> Dict[str, AggregatedInventoryState]:
        latest: Dict[str, Tuple[LedgerEntry, datetime]] = {}
        counts: Dict[str, int] = {}
        invalid_sku = 0
        bad_dates = 0

        for raw in entries:
            entry = self._coerce(raw)
            if entry is None:
                invalid_sku += 1
                continue
            normalized = normalize(entry.sku, self.sku_mode, self.pad_width)
            if not normalized.valid:
                invalid_sku += 1
                continue

            ts = to_timestamp(entry.timestamp)
            if ts is None:
                bad_dates += 1
                logger.debug("ledger: unparseable date %r for SKU %s, sorting it first", entry.timestamp, entry.sku)
                ts = UNDATED

            key = normalized.key
            counts[key] = counts.get(key, 0) + 1
            current = latest.get(key)
            if current is None or ts > current[1]:
                latest[key] = (entry, ts)

        if invalid_sku:
            logger.warning("ledger: %s entries with a missing or invalid SKU were skipped", invalid_sku)
        if bad_dates:
            logger.warning("ledger: %s entries had unparseable dates and were sorted before every dated entry", bad_dates)

        result: Dict[str, AggregatedInventoryState] = {}
        for key, (entry, ts) in latest.items():
            state = self._build_state(key, entry, ts, counts[key])
            if state is not None:
                result[key] = state

        logger.info(
            "ledger aggregated: %s SKUs from %s entries (safety stock %s)",
            len(result), sum(counts.values()), self.safety_stock,
        )
        return result

    def _build_state(self, key: str, entry: LedgerEntry, ts: datetime, count: int) -> Optional[AggregatedInventoryState]:
        values: List[Optional[float]] = [
            to_quantity(entry.initial),
            to_quantity(entry.received),
            to_quantity(entry.shipped),
        ]
        if any(v is None for v in values):
            logger.warning(
                "ledger: non-numeric quantities for SKU %s (initial=%r received=%r shipped=%r), "
                "inventory will not be touched",
                entry.sku, entry.initial, entry.received, entry.shipped,
            )
            return None

        initial, received, shipped = values
        calculated = calculate_quantity(initial, received, shipped)
        return AggregatedInventoryState(
            sku=key,
            raw_sku=str(entry.sku),
            timestamp=ts,
            initial=initial,
            received=received,
            shipped=shipped,
            calculated_quantity=calculated,
            published_quantity=published_quantity(calculated, self.safety_stock),
            entry_count=count,
        )

    @staticmethod
    def _coerce(raw) -> Optional[LedgerEntry]:
        if isinstance(raw, LedgerEntry):
            return raw
        if not isinstance(raw, dict):
            return None
        try:
            return LedgerEntry.model_validate(raw)
        except ValidationError:
            return None
