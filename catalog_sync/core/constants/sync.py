"""
Sync constants: page sizes, retry timings, safety stock and SKU defaults.
"""

# Catalog pagination
DEFAULT_PAGE_SIZE: int = 100
MAX_PAGES: int = 500

# Retry policy (seconds)
BACKOFF_BASE_SECONDS: float = 1.0
MAX_JITTER_SECONDS: float = 1.0
THROTTLE_DELAY_SECONDS: float = 5.0

# Status codes retried besides the 5xx range
RETRYABLE_STATUS_CODES: frozenset = frozenset({429})

# Inventory policy
DEFAULT_SAFETY_STOCK: int = 3

# SKU matching
DEFAULT_SKU_PAD_WIDTH: int = 5

# Log a progress line every N dispatched items
PROGRESS_LOG_INTERVAL: int = 100

# Inventory levels read per variant; one per stocking location
INVENTORY_LEVELS_PER_ITEM: int = 50

INVENTORY_SET_REASON: str = "correction"
