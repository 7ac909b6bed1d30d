"""
Discount overlay: SKU -> percent map applied on top of local base prices.

Only 0 < pct < 100 changes a price; anything else leaves the base price
untouched. Loading never fails the run: a missing or unreadable source
gives an empty overlay and a warning.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from catalog_sync.core.constants.sync import DEFAULT_SKU_PAD_WIDTH
from catalog_sync.core.exceptions import CatalogSyncException
from catalog_sync.utils.sku_normalizer import NUMERIC_STRICT, normalize
from catalog_sync.utils.type_converters import TWO_PLACES, to_percent

logger = logging.getLogger("discount_overlay")

_HUNDRED = Decimal("100")


def is_effective(pct: Optional[float]) -> bool:
    return pct is not None and 0 < pct < 100


def apply_discount(base_price: Optional[Decimal], pct: Optional[float]) -> Optional[Decimal]:
    """basePrice * (1 - pct/100) rounded to 2dp; the base price when pct is missing or out of range."""
    if base_price is None:
        return None
    if not is_effective(pct):
        return base_price
    factor = Decimal(1) - Decimal(str(pct)) / _HUNDRED
    return (base_price * factor).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class DiscountOverlay:
    def __init__(self, discounts: Optional[Dict[str, float]] = None) -> None:
        self._discounts: Dict[str, float] = dict(discounts or {})

    def __len__(self) -> int:
        return len(self._discounts)

    def __contains__(self, key: str) -> bool:
        return key in self._discounts

    @property
    def discounts(self) -> Dict[str, float]:
        return dict(self._discounts)

    def get(self, key: str) -> Optional[float]:
        return self._discounts.get(key)

    def apply(self, base_price: Optional[Decimal], pct: Optional[float]) -> Optional[Decimal]:
        return apply_discount(base_price, pct)

    def effective_price(self, key: str, base_price: Optional[Decimal]) -> Optional[Decimal]:
        return apply_discount(base_price, self._discounts.get(key))

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[List[str]],
        sku_mode: str = NUMERIC_STRICT,
        pad_width: int = DEFAULT_SKU_PAD_WIDTH,
    ) -> "DiscountOverlay":
        """Parse `sku,discount` rows. A header row and malformed rows are skipped."""
        discounts: Dict[str, float] = {}
        skipped = 0
        ignored = 0
        for index, row in enumerate(rows):
            if len(row) < 2:
                skipped += 1
                continue
            raw_sku, raw_pct = row[0].strip(), row[1]
            pct = to_percent(raw_pct)
            normalized = normalize(raw_sku, sku_mode, pad_width)
            if index == 0 and pct is None:
                # header
                continue
            if pct is None or not normalized.valid:
                skipped += 1
                logger.debug("discounts: skipping row %s: %r", index + 1, row)
                continue
            if normalized.key in discounts:
                logger.warning(
                    "discounts: duplicate SKU %s (%s%% replaces %s%%)",
                    normalized.key, pct, discounts[normalized.key],
                )
            if not is_effective(pct):
                ignored += 1
            discounts[normalized.key] = pct

        if skipped:
            logger.warning("discounts: %s malformed rows skipped", skipped)
        if ignored:
            logger.info("discounts: %s entries outside 0-100%% will not change prices", ignored)
        logger.info("discounts loaded: %s SKUs", len(discounts))
        return cls(discounts)

    @classmethod
    async def load(
        cls,
        source,
        sku_mode: str = NUMERIC_STRICT,
        pad_width: int = DEFAULT_SKU_PAD_WIDTH,
    ) -> "DiscountOverlay":
        """Read rows from a DiscountSource. Any failure degrades to an empty overlay."""
        if source is None:
            logger.warning("discounts: no source configured, continuing without discounts")
            return cls()
        try:
            rows = await source.read_rows()
        except (CatalogSyncException, OSError, UnicodeDecodeError) as exc:
            logger.warning("discounts: could not load %s (%s), continuing without discounts", source.location, exc)
            return cls()
        return cls.from_rows(rows, sku_mode, pad_width)
