"""NOWPayments invoice processor adapter.

Creates hosted invoices with ``POST {base}/invoice``. The processor calls
back with payment notifications at ``{APP_URL}/ipn/nowpayments``.
"""

import httpx
import structlog

from bridge.exceptions import IssuerTimeout, IssuerUnavailable
from bridge.processor.port import (
    ISSUE_TIMEOUT_SECONDS,
    InvoiceProcessor,
    InvoiceRequest,
    IssuedInvoice,
)
from bridge.settings import Settings, get_settings

logger = structlog.get_logger(__name__)


class NowPaymentsProcessor(InvoiceProcessor):
    name = "nowpayments"

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings or get_settings()
        self._client = httpx.Client(
            base_url=self.settings.nowpayments_base_url,
            timeout=httpx.Timeout(ISSUE_TIMEOUT_SECONDS),
            transport=transport,
        )

    def _api_key(self) -> str:
        key = self.settings.nowpayments_api_key.strip()
        if not key:
            raise IssuerUnavailable("NOWPayments API key missing (NOWPAYMENTS_API_KEY)")
        return key

    def _issue(self, request: InvoiceRequest) -> IssuedInvoice:
        payload = {
            "price_amount": float(request.amount),
            "price_currency": request.currency,
            "order_id": request.order_ref,
            "order_description": f"Invoice for {request.order_ref}",
            "ipn_callback_url": self.settings.ipn_callback_url,
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
        }
        headers = {"x-api-key": self._api_key()}

        try:
            response = self._client.post("/invoice", json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.error("invoice_issue_timeout", order_ref=request.order_ref)
            raise IssuerTimeout(f"NOWPayments did not answer within {ISSUE_TIMEOUT_SECONDS:.0f}s") from exc
        except httpx.RequestError as exc:
            logger.error("invoice_issue_transport_error", order_ref=request.order_ref, error=str(exc))
            raise IssuerUnavailable(f"NOWPayments request failed: {exc}") from exc

        if response.status_code == 403:
            # Diagnostic only: never log the key itself
            logger.error(
                "invoice_issue_forbidden",
                key_length=len(self.settings.nowpayments_api_key),
                trimmed_key_length=len(self._api_key()),
            )
        if not response.is_success:
            raise IssuerUnavailable(
                f"NOWPayments invoice failed: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise IssuerUnavailable("NOWPayments returned a non-JSON body", response.status_code, response.text) from exc

        invoice_url = data.get("invoice_url") if isinstance(data, dict) else None
        if not invoice_url:
            raise IssuerUnavailable("NOWPayments response has no invoice_url", response.status_code, response.text)

        logger.info("invoice_issued", order_ref=request.order_ref, external_id=str(data.get("id", "")))
        return IssuedInvoice(external_id=str(data.get("id", "")), invoice_url=invoice_url)
