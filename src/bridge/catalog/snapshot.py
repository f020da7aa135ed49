"""Order snapshots — the normalised, per-request view of a storefront order.

Catalog adapters parse whatever the storefront returns into an
OrderSnapshot at the boundary. Everything downstream works with the
normalised shape:

- ``extract_money`` picks the payable amount from the money fields in a
  fixed priority order (first present wins).
- ``classify_status`` decides whether the order still needs payment.
- ``normalize_order_id`` turns raw numeric ids into catalog global ids.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from operator import attrgetter

from bridge.exceptions import CatalogConflict

DEFAULT_CURRENCY = "USD"

ORDER_GID_PREFIX = "gid://shopify/Order/"
DRAFT_ORDER_GID_PREFIX = "gid://shopify/DraftOrder/"

# Longest order reference (id, global id or display name) accepted from callers
ORDER_REF_MAX_LENGTH = 1024
# Stored aliases may also carry the prefix added by normalize_order_id
STORED_REF_MAX_LENGTH = ORDER_REF_MAX_LENGTH + len(ORDER_GID_PREFIX)

_NUMERIC_ID = re.compile(r"^\d+$")


class OrderKind(Enum):
    ORDER = "Order"
    DRAFT_ORDER = "DraftOrder"


class PaymentState(Enum):
    OPEN = "Open"
    SETTLED = "Settled"


# Financial statuses meaning the order requires no further payment
SETTLED_STATUSES = frozenset({"PAID", "PARTIALLY_REFUNDED", "REFUNDED", "VOIDED"})

# Statuses the amount-guarded notification flow may still mark paid
PAYABLE_ORDER_STATUSES = frozenset({"PENDING", "PARTIALLY_PAID"})
PAYABLE_DRAFT_STATUSES = frozenset({"OPEN", "INVOICE_SENT"})


@dataclass(frozen=True)
class Money:
    """An amount paired with its currency.

    Amounts in different currencies are never compared: ``same_as`` is
    false whenever the currencies differ.
    """

    amount: float = 0.0
    currency: str = DEFAULT_CURRENCY

    TOLERANCE = 1e-8

    def same_as(self, other: "Money") -> bool:
        return self.currency == other.currency and abs(self.amount - other.amount) < self.TOLERANCE

    @property
    def is_payable(self) -> bool:
        return self.amount > 0


@dataclass(frozen=True)
class OrderSnapshot:
    id: str
    name: str
    kind: OrderKind = OrderKind.ORDER
    email: str | None = None
    financial_status: str = ""
    currency_code: str | None = None
    outstanding_shop: Money | None = None
    outstanding_presentment: Money | None = None
    total_shop: Money | None = None
    total_presentment: Money | None = None
    subtotal_shop: Money | None = None
    subtotal_presentment: Money | None = None

    @property
    def is_draft(self) -> bool:
        return self.kind == OrderKind.DRAFT_ORDER


# Priority order matters: changing it changes which amount/currency is quoted.
MONEY_ACCESSORS = (
    ("outstanding_shop", attrgetter("outstanding_shop")),
    ("outstanding_presentment", attrgetter("outstanding_presentment")),
    ("total_shop", attrgetter("total_shop")),
    ("total_presentment", attrgetter("total_presentment")),
    ("subtotal_shop", attrgetter("subtotal_shop")),
    ("subtotal_presentment", attrgetter("subtotal_presentment")),
)


def extract_money(snapshot: OrderSnapshot) -> Money:
    """Resolve the payable amount of an order.

    Falls back to 0 in the order's own currency (or USD) when no money
    field is present. Callers treat ``amount <= 0`` as nothing payable.
    """
    for _name, accessor in MONEY_ACCESSORS:
        money = accessor(snapshot)
        if money is not None:
            return Money(
                amount=money.amount,
                currency=money.currency or snapshot.currency_code or DEFAULT_CURRENCY,
            )
    return Money(amount=0.0, currency=snapshot.currency_code or DEFAULT_CURRENCY)


def normalize_status(raw: str | None) -> str:
    return str(raw or "").strip().upper()


def classify_status(snapshot: OrderSnapshot) -> PaymentState:
    if normalize_status(snapshot.financial_status) in SETTLED_STATUSES:
        return PaymentState.SETTLED
    return PaymentState.OPEN


def is_payable(snapshot: OrderSnapshot) -> bool:
    """True when the live order may still be completed or marked paid."""
    status = normalize_status(snapshot.financial_status)
    if snapshot.is_draft:
        return status in PAYABLE_DRAFT_STATUSES
    return status in PAYABLE_ORDER_STATUSES


def normalize_order_id(reference: str | None) -> str | None:
    """Turn a REST-style numeric order id into a global Order id.

    Global ids and display names are returned unchanged.
    """
    if not reference:
        return reference
    reference = reference.strip()
    if reference.startswith("gid://"):
        return reference
    if _NUMERIC_ID.match(reference):
        return f"{ORDER_GID_PREFIX}{reference}"
    return reference


def is_draft_order_id(reference: str | None) -> bool:
    return bool(reference) and reference.startswith(DRAFT_ORDER_GID_PREFIX)


def is_order_id(reference: str | None) -> bool:
    return bool(reference) and reference.startswith(ORDER_GID_PREFIX)


def parse_amount(raw) -> float:
    """Coerce a catalog or processor amount into a finite float (0 when unusable)."""
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def parse_money(raw: dict | None) -> Money | None:
    """Parse a ``{amount, currencyCode}`` pair; absent when there is no amount."""
    if not isinstance(raw, dict) or raw.get("amount") is None:
        return None
    return Money(amount=parse_amount(raw.get("amount")), currency=str(raw.get("currencyCode") or ""))


def draft_financial_status(draft_status: str | None) -> str:
    """Map a draft order's lifecycle status onto the financial status vocabulary.

    A COMPLETED draft has been converted into a paid order; OPEN and
    INVOICE_SENT drafts still await payment and keep their own names.
    """
    status = normalize_status(draft_status)
    return "PAID" if status == "COMPLETED" else status


def ensure_payable(snapshot: OrderSnapshot | None, order_ref: str) -> OrderSnapshot:
    """Raise CatalogConflict unless the live order can still be marked paid."""
    if snapshot is None or not is_payable(snapshot):
        raise CatalogConflict(order_ref, snapshot.financial_status if snapshot else None)
    return snapshot
