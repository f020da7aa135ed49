"""FastAPI routes for the bridge — invoice resolution, notifications, pages."""

import json

import structlog
from fastapi import APIRouter, Form, Header, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from bridge.api.pages import (
    cancel_page,
    invoice_frame_page,
    message_page,
    pay_form_page,
    success_page,
)
from bridge.api.schemas import InvoiceUrlRequest, InvoiceUrlResponse, OrdersCreateWebhook
from bridge.catalog.webhook import verify_webhook_hmac
from bridge.reconciliation.notification import (
    SIGNATURE_MAX_LENGTH,
    HandleGuardedPaymentNotification,
    HandlePaymentNotification,
)
from bridge.reconciliation.outcomes import (
    NotificationOutcome,
    NotificationResult,
    ResolutionOutcome,
)
from bridge.reconciliation.resolution import (
    OpenPaymentPage,
    ReconcileInvoice,
    ResolveInvoice,
)
from bridge.settings import get_settings

logger = structlog.get_logger(__name__)

# Status code and body the processor sees for each notification outcome.
# Only authentication and payload problems (plus the guarded variant's
# amount and conflict checks) are non-200.
NOTIFICATION_RESPONSES = {
    NotificationOutcome.REJECTED_SIGNATURE: (401, "bad signature"),
    NotificationOutcome.MALFORMED: (400, "malformed payload"),
    NotificationOutcome.IGNORED: (200, "ignored"),
    NotificationOutcome.IGNORED_UNMAPPED: (200, "ok"),
    NotificationOutcome.UNDERPAID: (400, "amount too low"),
    NotificationOutcome.CONFLICT: (409, "order not payable"),
    NotificationOutcome.COMPLETED: (200, "OK"),
    NotificationOutcome.ALREADY_COMPLETED: (200, "already_completed"),
    NotificationOutcome.COMPLETE_FAILED: (200, "complete_failed"),
}


# ---------------------------------------------------------------------------
# Invoice resolution
# ---------------------------------------------------------------------------
osr_router = APIRouter(prefix="/osr", tags=["invoices"])


@osr_router.get("/invoice-url")
async def redirect_to_invoice(
    order_id: str | None = Query(default=None, alias="orderId"),
    order_name: str | None = Query(default=None, alias="orderName"),
):
    """Redirect to the order's invoice, issuing one on a cache miss."""
    if not order_id and not order_name:
        return PlainTextResponse("missing orderId or orderName", status_code=400)

    command = ResolveInvoice(order_id=order_id or None, order_name=order_name or None)
    resolution = current_domain.process(command, asynchronous=False)

    if resolution.has_invoice:
        return RedirectResponse(resolution.invoice_url, status_code=302)
    if resolution.outcome == ResolutionOutcome.SETTLED:
        return RedirectResponse(get_settings().success_url(resolution.order_ref), status_code=302)
    if resolution.outcome == ResolutionOutcome.NOT_FOUND:
        return PlainTextResponse("order not found", status_code=404)
    return PlainTextResponse("order_amount_unknown", status_code=422)


@osr_router.post("/invoice-url", response_model=InvoiceUrlResponse)
async def order_status_invoice_url(body: InvoiceUrlRequest) -> InvoiceUrlResponse:
    """Return the invoice for an order, reusing it only when the amount still matches."""
    command = ReconcileInvoice(order_id=body.order_id, shop=body.shop)
    resolution = current_domain.process(command, asynchronous=False)

    if resolution.outcome == ResolutionOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="order_not_found")
    return InvoiceUrlResponse(
        invoice_url=resolution.invoice_url,
        amount=resolution.amount or 0.0,
        currency=resolution.currency or "USD",
    )


# ---------------------------------------------------------------------------
# Processor notifications (IPN)
# ---------------------------------------------------------------------------
ipn_router = APIRouter(prefix="/ipn", tags=["notifications"])


def _notification_response(result: NotificationResult) -> PlainTextResponse:
    status_code, text = NOTIFICATION_RESPONSES[result.outcome]
    return PlainTextResponse(text, status_code=status_code)


async def _process_notification(request: Request, command_class, signature: str) -> PlainTextResponse:
    if len(signature) > SIGNATURE_MAX_LENGTH:
        logger.warning("notification_signature_too_long", path=request.url.path, length=len(signature))
        return _notification_response(NotificationResult(outcome=NotificationOutcome.REJECTED_SIGNATURE))

    raw = (await request.body()).decode("utf-8", errors="replace")
    try:
        command = command_class(raw_body=raw, signature=signature)
    except ValidationError as exc:
        # An empty body fails the required raw_body field
        logger.warning("notification_rejected_body", path=request.url.path, errors=exc.messages)
        return _notification_response(NotificationResult(outcome=NotificationOutcome.MALFORMED))

    try:
        result = current_domain.process(command, asynchronous=False)
    except Exception:
        # Acknowledge anyway so the processor stops retrying; ERR is greppable in logs
        logger.exception("notification_fatal", path=request.url.path)
        return PlainTextResponse("ERR", status_code=200)
    return _notification_response(result)


@ipn_router.post("/nowpayments")
async def nowpayments_ipn(request: Request, x_nowpayments_sig: str = Header(default="")):
    """Handle a NOWPayments notification (default flow)."""
    return await _process_notification(request, HandlePaymentNotification, x_nowpayments_sig)


@ipn_router.post("/nowpayments/guarded")
async def nowpayments_ipn_guarded(request: Request, x_nowpayments_sig: str = Header(default="")):
    """Handle a NOWPayments notification with the paid-amount guard."""
    return await _process_notification(request, HandleGuardedPaymentNotification, x_nowpayments_sig)


# ---------------------------------------------------------------------------
# Storefront webhooks
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/orders-create")
async def orders_create(
    request: Request,
    x_shopify_shop_domain: str = Header(default=""),
    x_shopify_hmac_sha256: str = Header(default=""),
):
    """Pre-issue an invoice for a newly created order.

    Redelivery is harmless: the amount-checked path reuses the invoice
    already issued for the same amount.
    """
    settings = get_settings()
    raw = await request.body()

    if settings.shopify_api_secret and not verify_webhook_hmac(raw, x_shopify_hmac_sha256, settings.shopify_api_secret):
        logger.warning("orders_create_bad_hmac")
        return PlainTextResponse("bad signature", status_code=401)

    shop = x_shopify_shop_domain.strip().lower()
    if shop and shop != settings.shop:
        logger.warning("orders_create_unexpected_shop", shop=shop, expected=settings.shop)
        return PlainTextResponse("ok")

    try:
        webhook = OrdersCreateWebhook.model_validate(json.loads(raw or b"{}"))
        if not webhook.admin_graphql_api_id:
            return PlainTextResponse("ok")

        resolution = current_domain.process(
            ReconcileInvoice(order_id=webhook.admin_graphql_api_id, shop=shop or None),
            asynchronous=False,
        )
        logger.info(
            "orders_create_processed",
            order_ref=webhook.admin_graphql_api_id,
            outcome=resolution.outcome.value,
        )
    except Exception:
        # Keep the webhook green to avoid storefront retries
        logger.exception("orders_create_failed")
    return PlainTextResponse("ok")


@webhook_router.post("/orders-paid")
async def orders_paid():
    return PlainTextResponse("ok")


@webhook_router.post("/orders-updated")
async def orders_updated():
    return PlainTextResponse("ok")


# ---------------------------------------------------------------------------
# Customer-facing pages
# ---------------------------------------------------------------------------
page_router = APIRouter(tags=["pages"])


@page_router.get("/pay", response_class=HTMLResponse)
async def render_pay_page() -> HTMLResponse:
    return HTMLResponse(pay_form_page())


@page_router.post("/pay/start", response_class=HTMLResponse)
async def start_pay(order: str = Form(default=""), email: str = Form(default="")) -> HTMLResponse:
    """Open the invoice for the order a customer typed in."""
    if not order.strip():
        return HTMLResponse(message_page("Missing order", "Please enter your order number."), status_code=400)

    command = OpenPaymentPage(order=order.strip(), email=email.strip() or None)
    resolution = current_domain.process(command, asynchronous=False)

    if resolution.has_invoice:
        return HTMLResponse(invoice_frame_page(resolution.order_name, resolution.invoice_url))
    if resolution.outcome == ResolutionOutcome.NOT_FOUND:
        return HTMLResponse(message_page("Order not found", "We could not find that order."), status_code=404)
    if resolution.outcome == ResolutionOutcome.EMAIL_MISMATCH:
        return HTMLResponse(
            message_page("Email mismatch", "Email does not match this order."),
            status_code=403,
        )
    if resolution.outcome == ResolutionOutcome.SETTLED:
        return HTMLResponse(message_page("Already paid", "This order has already been paid."))
    return HTMLResponse(message_page("Nothing to pay", "This order has no outstanding balance."))


@page_router.get("/payment-success", response_class=HTMLResponse)
async def payment_success(order: str | None = None) -> HTMLResponse:
    return HTMLResponse(success_page(get_settings().store_url, order))


@page_router.get("/payment-cancel", response_class=HTMLResponse)
async def payment_cancel(order: str | None = None) -> HTMLResponse:
    settings = get_settings()
    return HTMLResponse(cancel_page(settings.app_url, settings.store_url, order))
