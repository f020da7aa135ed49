"""Marketing port — outbound "invoice created" events for customer follow-up."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class InvoiceCreatedEvent:
    email: str
    order_name: str
    invoice_url: str
    amount: float | None = None
    currency: str | None = None


class MarketingPlatform(ABC):
    """Abstract marketing platform interface."""

    @abstractmethod
    def send_invoice_created(self, event: InvoiceCreatedEvent) -> None:
        """Publish the event. Raises MarketingError on failure."""
        ...
