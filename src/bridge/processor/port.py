"""Invoice processor port (abstract interface).

Every adapter validates its input the same way before talking to the
processor: a non-positive amount raises InvalidAmount and an empty
currency raises InvalidCurrency. No adapter retries; callers decide.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from bridge.exceptions import InvalidAmount, InvalidCurrency

ISSUE_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class InvoiceRequest:
    order_ref: str
    amount: float
    currency: str
    success_url: str
    cancel_url: str

    def validate(self) -> None:
        try:
            amount = float(self.amount)
        except (TypeError, ValueError) as exc:
            raise InvalidAmount(self.amount) from exc
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidAmount(self.amount)
        if not self.currency or not str(self.currency).strip():
            raise InvalidCurrency(self.currency)


@dataclass(frozen=True)
class IssuedInvoice:
    """An invoice accepted by the processor."""

    external_id: str
    invoice_url: str


class InvoiceProcessor(ABC):
    """Abstract invoice processor interface."""

    name: str = "processor"

    def create_invoice(self, request: InvoiceRequest) -> IssuedInvoice:
        """Validate ``request`` and issue an invoice for it."""
        request.validate()
        return self._issue(request)

    @abstractmethod
    def _issue(self, request: InvoiceRequest) -> IssuedInvoice:
        """Issue a validated invoice request against the processor."""
        ...
