"""Configurable fake invoice processor for development and testing.

Issues deterministic invoice URLs without any network traffic. Tests
configure it to fail or time out to exercise the error paths.
"""

from itertools import count

from bridge.exceptions import IssuerTimeout, IssuerUnavailable
from bridge.processor.port import InvoiceProcessor, InvoiceRequest, IssuedInvoice


class FakeProcessor(InvoiceProcessor):
    """In-process invoice processor that records every call."""

    name = "fake"

    def __init__(self, base_url: str = "https://pay.example.test/invoice") -> None:
        self.base_url = base_url.rstrip("/")
        self.failure: str | None = None
        self.failure_status: int = 503
        self.calls: list[InvoiceRequest] = []
        self._ids = count(5000)

    def configure(self, failure: str | None = None, status_code: int = 503) -> None:
        """Set ``failure`` to "unavailable" or "timeout"; None issues normally."""
        self.failure = failure
        self.failure_status = status_code

    def _issue(self, request: InvoiceRequest) -> IssuedInvoice:
        self.calls.append(request)

        if self.failure == "timeout":
            raise IssuerTimeout("Invoice processor did not answer within 15s")
        if self.failure == "unavailable":
            raise IssuerUnavailable(
                f"Invoice processor failed: {self.failure_status}",
                status_code=self.failure_status,
                body='{"message":"fake failure"}',
            )

        external_id = str(next(self._ids))
        return IssuedInvoice(external_id=external_id, invoice_url=f"{self.base_url}?iid={external_id}")
