"""Order catalog factory.

Provides get_catalog() / set_catalog() to swap implementations:
- FakeCatalog for development and testing (default)
- ShopifyCatalog when ORDER_CATALOG=shopify
"""

import os

from bridge.catalog.port import OrderCatalog

_current_catalog: OrderCatalog | None = None


def get_catalog() -> OrderCatalog:
    """Return the configured order catalog (singleton)."""
    global _current_catalog
    if _current_catalog is None:
        adapter = os.environ.get("ORDER_CATALOG", "fake")
        if adapter == "fake":
            from bridge.catalog.fake_adapter import FakeCatalog

            _current_catalog = FakeCatalog()
        elif adapter == "shopify":
            from bridge.catalog.shopify_adapter import ShopifyCatalog

            _current_catalog = ShopifyCatalog()
        else:
            raise ValueError(f"Unknown order catalog: {adapter}")
    return _current_catalog


def set_catalog(catalog: OrderCatalog) -> None:
    """Override the active order catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the environment-configured catalog."""
    global _current_catalog
    _current_catalog = None
