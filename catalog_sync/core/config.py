import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()

SYNC_MODES = ("local_first", "shopify_first")
SYNC_TYPES = ("price", "inventory", "both")
SKU_MODES = ("numeric_strict", "alphanumeric")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Shopify
    shopify_store_domain: str | None = os.getenv("SHOPIFY_STORE_DOMAIN") or os.getenv("SHOPIFY_SHOP_NAME")
    shopify_admin_api_token: str | None = os.getenv("SHOPIFY_ADMIN_API_TOKEN") or os.getenv("SHOPIFY_ACCESS_TOKEN")
    shopify_api_version: str = os.getenv("SHOPIFY_API_VERSION", "2024-10")
    shopify_location_id: Optional[str] = os.getenv("LOCATION_ID")
    shopify_page_size: int = int(os.getenv("SHOPIFY_PAGE_SIZE", "100"))
    shopify_max_pages: int = int(os.getenv("SHOPIFY_MAX_PAGES", "500"))
    shopify_page_delay: float = float(os.getenv("SHOPIFY_PAGE_DELAY", "0.25"))

    # Local feeds
    data_api_url: str | None = os.getenv("DATA_API_URL")
    inventory_api_url: str | None = os.getenv("INVENTORY_API_URL")
    discount_csv_path: str | None = os.getenv("DISCOUNT_CSV_PATH")

    # Rate limits and retries
    shopify_rate_limit: float = float(os.getenv("SHOPIFY_RATE_LIMIT", "2"))
    max_retries: int = int(os.getenv("MAX_RETRIES", "3"))
    # Milliseconds, kept in the same unit as the legacy env var
    api_timeout_ms: int = int(os.getenv("API_TIMEOUT", "60000"))
    throttle_delay: float = float(os.getenv("SHOPIFY_THROTTLE_DELAY", "5"))

    # Sync policy
    sync_mode: str = os.getenv("SYNC_MODE", "shopify_first")
    sync_type: str = os.getenv("SYNC_TYPE", "both")
    sync_dry_run: bool = _env_bool("SYNC_DRY_RUN")
    sync_max_concurrency: int = int(os.getenv("SYNC_MAX_CONCURRENCY", "25"))
    safety_stock: int = int(os.getenv("SAFETY_STOCK", "3"))
    sku_normalization_mode: str = os.getenv("SKU_NORMALIZATION_MODE", "numeric_strict")
    sku_pad_width: int = int(os.getenv("SKU_PAD_WIDTH", "5"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file_path: Optional[str] = os.getenv("LOG_FILE_PATH")

    @property
    def api_timeout_seconds(self) -> float:
        return self.api_timeout_ms / 1000.0

    @property
    def syncs_price(self) -> bool:
        return self.sync_type in ("price", "both")

    @property
    def syncs_inventory(self) -> bool:
        return self.sync_type in ("inventory", "both")

    def validate_required(self) -> list[str]:
        """Return a list of configuration errors (empty when the settings are usable)."""
        errors = []
        if not self.shopify_store_domain:
            errors.append("SHOPIFY_STORE_DOMAIN (or SHOPIFY_SHOP_NAME) is not set")
        if not self.shopify_admin_api_token:
            errors.append("SHOPIFY_ADMIN_API_TOKEN (or SHOPIFY_ACCESS_TOKEN) is not set")
        if not self.data_api_url:
            errors.append("DATA_API_URL is not set")
        if self.syncs_inventory and not self.inventory_api_url:
            errors.append("INVENTORY_API_URL is required when syncing inventory")
        if self.sync_mode not in SYNC_MODES:
            errors.append(f"SYNC_MODE must be one of {', '.join(SYNC_MODES)} (got {self.sync_mode!r})")
        if self.sync_type not in SYNC_TYPES:
            errors.append(f"SYNC_TYPE must be one of {', '.join(SYNC_TYPES)} (got {self.sync_type!r})")
        if self.sku_normalization_mode not in SKU_MODES:
            errors.append(
                f"SKU_NORMALIZATION_MODE must be one of {', '.join(SKU_MODES)} "
                f"(got {self.sku_normalization_mode!r})"
            )
        if self.shopify_rate_limit <= 0:
            errors.append("SHOPIFY_RATE_LIMIT must be positive")
        if self.max_retries < 0:
            errors.append("MAX_RETRIES cannot be negative")
        if self.safety_stock < 0:
            errors.append("SAFETY_STOCK cannot be negative")
        return errors


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
