"""
Catalog sync package.
Reconciles a Shopify catalog's prices and on-hand inventory against the
local price feed and inventory ledger.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
