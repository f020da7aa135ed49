"""In-memory fake order catalog for development and testing.

Holds orders and draft orders as OrderSnapshots. Completion behaves like
the real storefront: the first call takes effect, later calls report an
"already completed" / "already paid" error. ``effective_mutations``
counts only the calls that changed something.
"""

from dataclasses import replace
from itertools import count

from bridge.catalog.port import OrderCatalog
from bridge.catalog.snapshot import (
    DRAFT_ORDER_GID_PREFIX,
    ORDER_GID_PREFIX,
    PAYABLE_DRAFT_STATUSES,
    PAYABLE_ORDER_STATUSES,
    Money,
    OrderKind,
    OrderSnapshot,
    draft_financial_status,
    normalize_status,
)
from bridge.exceptions import CatalogError, CatalogMutationFailed


class FakeCatalog(OrderCatalog):
    """Configurable in-memory catalog."""

    name = "fake"

    def __init__(self) -> None:
        self.orders: dict[str, OrderSnapshot] = {}
        self.unavailable: bool = False
        self.mutation_error: str | None = None
        self.lookups: list[tuple[str, str]] = []
        self.mutation_attempts: list[str] = []
        self.effective_mutations: list[str] = []
        self._order_ids = count(900000)

    def configure(self, unavailable: bool = False, mutation_error: str | None = None) -> None:
        """Make lookups fail, or make every mutation fail with ``mutation_error``."""
        self.unavailable = unavailable
        self.mutation_error = mutation_error

    def add_order(
        self,
        order_id: str,
        name: str,
        amount: float,
        currency: str = "USD",
        status: str = "PENDING",
        email: str | None = None,
    ) -> OrderSnapshot:
        """Register an order; ids under DraftOrder/ become draft orders."""
        if order_id.startswith(DRAFT_ORDER_GID_PREFIX):
            snapshot = OrderSnapshot(
                id=order_id,
                name=name,
                kind=OrderKind.DRAFT_ORDER,
                email=email,
                financial_status=draft_financial_status("OPEN" if status == "PENDING" else status),
                currency_code=currency,
                total_shop=Money(amount, currency),
            )
        else:
            snapshot = OrderSnapshot(
                id=order_id,
                name=name,
                kind=OrderKind.ORDER,
                email=email,
                financial_status=status,
                currency_code=currency,
                outstanding_shop=Money(amount, currency),
            )
        self.orders[order_id] = snapshot
        return snapshot

    def put(self, snapshot: OrderSnapshot) -> None:
        self.orders[snapshot.id] = snapshot

    def resolve_by_id(self, reference: str, shop: str | None = None) -> OrderSnapshot | None:
        self.lookups.append(("id", reference))
        self._check_available()
        return self.orders.get(reference)

    def resolve_by_name(self, display_name: str, shop: str | None = None) -> OrderSnapshot | None:
        self.lookups.append(("name", display_name))
        self._check_available()
        # Orders first, then drafts
        for kind in (OrderKind.ORDER, OrderKind.DRAFT_ORDER):
            for snapshot in self.orders.values():
                if snapshot.kind == kind and snapshot.name == display_name:
                    return snapshot
        return None

    def _complete_draft(self, reference: str, shop: str | None) -> str | None:
        draft = self._mutable(reference)
        if normalize_status(draft.financial_status) not in PAYABLE_DRAFT_STATUSES:
            raise CatalogMutationFailed(
                "draftOrderComplete failed",
                errors=["This draft order has already been completed"],
            )

        final_order_id = f"{ORDER_GID_PREFIX}{next(self._order_ids)}"
        self.orders[reference] = replace(draft, financial_status="PAID")
        self.orders[final_order_id] = OrderSnapshot(
            id=final_order_id,
            name=draft.name,
            kind=OrderKind.ORDER,
            email=draft.email,
            financial_status="PAID",
            currency_code=draft.currency_code,
            outstanding_shop=Money(0.0, draft.currency_code or "USD"),
            total_shop=draft.total_shop,
        )
        self.effective_mutations.append(reference)
        return final_order_id

    def _mark_paid(self, reference: str, shop: str | None) -> str | None:
        order = self._mutable(reference)
        status = normalize_status(order.financial_status)
        if status == "PAID":
            raise CatalogMutationFailed("orderMarkAsPaid failed", errors=["Order is already paid"])
        if status not in PAYABLE_ORDER_STATUSES:
            raise CatalogMutationFailed("orderMarkAsPaid failed", errors=[f"Order cannot be marked as paid from {status}"])

        currency = order.currency_code or "USD"
        self.orders[reference] = replace(order, financial_status="PAID", outstanding_shop=Money(0.0, currency))
        self.effective_mutations.append(reference)
        return reference

    def _mutable(self, reference: str) -> OrderSnapshot:
        self.mutation_attempts.append(reference)
        if self.mutation_error:
            raise CatalogMutationFailed(self.mutation_error, errors=[self.mutation_error])
        snapshot = self.orders.get(reference)
        if snapshot is None:
            raise CatalogMutationFailed(f"{reference} does not exist", errors=["Order does not exist"])
        return snapshot

    def _check_available(self) -> None:
        if self.unavailable:
            raise CatalogError("Catalog unavailable")
