"""Bridge API package."""

from bridge.api.errors import register_bridge_exception_handlers
from bridge.api.routes import ipn_router, osr_router, page_router, webhook_router

__all__ = [
    "osr_router",
    "ipn_router",
    "webhook_router",
    "page_router",
    "register_bridge_exception_handlers",
]
