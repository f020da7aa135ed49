"""Fake marketing platform — records events instead of sending them."""

from bridge.exceptions import MarketingError
from bridge.marketing.port import InvoiceCreatedEvent, MarketingPlatform


class FakeMarketing(MarketingPlatform):
    def __init__(self) -> None:
        self.should_fail: bool = False
        self.sent: list[InvoiceCreatedEvent] = []

    def configure(self, should_fail: bool) -> None:
        self.should_fail = should_fail

    def send_invoice_created(self, event: InvoiceCreatedEvent) -> None:
        if self.should_fail:
            raise MarketingError("Fake marketing failure")
        self.sent.append(event)
