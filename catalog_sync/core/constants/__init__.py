"""
Constants package: re-exports from domain-specific modules.

Usage:
    from catalog_sync.core.constants.sync import MAX_PAGES
    # or
    from catalog_sync.core.constants import MAX_PAGES
"""

from catalog_sync.core.constants import sync
from catalog_sync.core.constants.sync import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGES,
    BACKOFF_BASE_SECONDS,
    MAX_JITTER_SECONDS,
    THROTTLE_DELAY_SECONDS,
    RETRYABLE_STATUS_CODES,
    DEFAULT_SAFETY_STOCK,
    DEFAULT_SKU_PAD_WIDTH,
    PROGRESS_LOG_INTERVAL,
    INVENTORY_LEVELS_PER_ITEM,
    INVENTORY_SET_REASON,
)

__all__ = [
    "sync",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGES",
    "BACKOFF_BASE_SECONDS",
    "MAX_JITTER_SECONDS",
    "THROTTLE_DELAY_SECONDS",
    "RETRYABLE_STATUS_CODES",
    "DEFAULT_SAFETY_STOCK",
    "DEFAULT_SKU_PAD_WIDTH",
    "PROGRESS_LOG_INTERVAL",
    "INVENTORY_LEVELS_PER_ITEM",
    "INVENTORY_SET_REASON",
]
