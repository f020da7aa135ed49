"""Order catalog port (abstract interface).

The storefront is the source of truth for order status. Adapters expose
lookups that return normalised OrderSnapshots and a single mutation,
``complete_or_mark_paid``, that completes a draft order or marks a real
order paid.

Catalog errors mentioning "already", "not open", "closed" or "completed"
mean another path got there first: they are reported as success with
warnings so repeated notifications stay harmless.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import structlog

from bridge.catalog.snapshot import OrderSnapshot, is_draft_order_id, is_order_id
from bridge.exceptions import CatalogError, CatalogMutationFailed

logger = structlog.get_logger(__name__)

BENIGN_ERROR_MARKERS = ("already", "not open", "closed", "completed")


def is_benign_error(message: str) -> bool:
    lowered = str(message or "").lower()
    return any(marker in lowered for marker in BENIGN_ERROR_MARKERS)


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of a completion / mark-paid attempt."""

    ok: bool
    final_order_id: str | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None


class OrderCatalog(ABC):
    """Abstract order catalog interface."""

    name: str = "catalog"

    @abstractmethod
    def resolve_by_id(self, reference: str, shop: str | None = None) -> OrderSnapshot | None:
        """Fetch an order or draft order by catalog id."""
        ...

    @abstractmethod
    def resolve_by_name(self, display_name: str, shop: str | None = None) -> OrderSnapshot | None:
        """Search orders, then draft orders, by display name. First hit wins."""
        ...

    @abstractmethod
    def _complete_draft(self, reference: str, shop: str | None) -> str | None:
        """Complete a draft order; return the resulting order id when known."""
        ...

    @abstractmethod
    def _mark_paid(self, reference: str, shop: str | None) -> str | None:
        """Mark an order paid; return its id when known."""
        ...

    def complete_or_mark_paid(self, reference: str, shop: str | None = None) -> CompletionResult:
        """Drive an order to paid without ever raising.

        Benign idempotency errors become ``ok=True`` with the messages kept as
        warnings; anything else becomes ``ok=False`` with the error text.
        """
        try:
            if is_draft_order_id(reference):
                final_order_id = self._complete_draft(reference, shop)
            elif is_order_id(reference):
                final_order_id = self._mark_paid(reference, shop)
            else:
                return CompletionResult(ok=False, error=f"Unknown order reference type: {reference}")
        except CatalogMutationFailed as exc:
            if exc.errors and all(is_benign_error(e) for e in exc.errors):
                logger.warning("catalog_completion_benign", order_ref=reference, errors=exc.errors)
                return CompletionResult(ok=True, warnings=exc.errors)
            return CompletionResult(ok=False, warnings=exc.errors, error=str(exc))
        except CatalogError as exc:
            return CompletionResult(ok=False, error=str(exc))

        return CompletionResult(ok=True, final_order_id=final_order_id)
