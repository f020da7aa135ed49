"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
"""

from dataclasses import dataclass, field


@dataclass
class InvoiceState:
    """Tracks the references a simulated customer used to reach an invoice."""

    order_number: int | None = None
    order_ref: str | None = None
    invoice_url: str | None = None
    lookups: int = 0


@dataclass
class NotificationState:
    """Tracks one simulated payment as the processor reports on it."""

    order_ref: str | None = None
    amount: float = 0.0
    statuses: list[str] = field(default_factory=list)
