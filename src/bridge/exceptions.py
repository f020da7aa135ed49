"""Error taxonomy for the bridge.

Terminal business outcomes (order not found, already settled, nothing
owed, bad notification signature) are not errors: the reconciliation
handlers return them as outcome values. The exceptions below cover
failures of the external collaborators.
"""


class BridgeError(Exception):
    """Base class for bridge errors."""


# ---------------------------------------------------------------------------
# Invoice processor
# ---------------------------------------------------------------------------
class InvoiceIssuerError(BridgeError):
    """The invoice processor could not issue an invoice."""


class InvalidAmount(InvoiceIssuerError):
    def __init__(self, amount) -> None:
        super().__init__(f'Invalid amount "{amount}"')
        self.amount = amount


class InvalidCurrency(InvoiceIssuerError):
    def __init__(self, currency) -> None:
        super().__init__(f'Invalid currency "{currency}"')
        self.currency = currency


class IssuerUnavailable(InvoiceIssuerError):
    """Transport failure or non-2xx response from the processor."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class IssuerTimeout(InvoiceIssuerError):
    """No response from the processor within the issuing deadline."""


# ---------------------------------------------------------------------------
# Order catalog
# ---------------------------------------------------------------------------
class CatalogError(BridgeError):
    """The storefront catalog could not be read or mutated."""


class CatalogConflict(CatalogError):
    """The order's live status no longer permits the intended mutation."""

    def __init__(self, order_ref: str, status: str | None) -> None:
        super().__init__(f"Order {order_ref} cannot be marked paid due to status {status}")
        self.order_ref = order_ref
        self.status = status


class CatalogMutationFailed(CatalogError):
    """The catalog rejected a completion or mark-paid mutation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


# ---------------------------------------------------------------------------
# Marketing
# ---------------------------------------------------------------------------
class MarketingError(BridgeError):
    """The marketing platform rejected or failed to receive an event."""
