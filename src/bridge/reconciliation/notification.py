"""Payment notifications — commands and handler.

HandlePaymentNotification (default flow)
    1. Verify the HMAC signature; reject on failure.
    2. Record the notification on the mapping (placeholder when unknown).
    3. Ignore any status outside the configured final set.
    4. Complete draft orders; real order references need no action.
    5. A failed completion is logged and still acknowledged, so the
       processor stops retrying.

HandleGuardedPaymentNotification (amount guard)
    Only acts on references that already have a mapping. Rejects payments
    short of the expected amount or reported in another currency, re-reads
    the live order and refuses (conflict) when it is no longer payable,
    then completes the draft or marks the order paid.

Neither flow enforces status monotonicity itself: repeated final
notifications are safe because catalog completion is idempotent.
"""

import json

import structlog
from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain
from pydantic import ValidationError as PayloadValidationError

from bridge.catalog import get_catalog
from bridge.catalog.snapshot import ensure_payable, is_draft_order_id
from bridge.domain import bridge
from bridge.exceptions import CatalogConflict, CatalogError
from bridge.mapping.mapping import InvoiceMapping
from bridge.processor.notification import PaymentNotificationPayload
from bridge.processor.signature import verify_signature
from bridge.reconciliation.outcomes import NotificationOutcome, NotificationResult
from bridge.settings import get_settings

logger = structlog.get_logger(__name__)

AMOUNT_EPSILON = 1e-8

# Longest signature header worth verifying; a SHA-512 hex digest is 128
SIGNATURE_MAX_LENGTH = 512


@bridge.command(part_of="InvoiceMapping")
class HandlePaymentNotification:
    """Process a payment notification from the invoice processor."""

    raw_body = Text(required=True)  # JSON body as received
    signature = String(max_length=SIGNATURE_MAX_LENGTH)


@bridge.command(part_of="InvoiceMapping")
class HandleGuardedPaymentNotification:
    """Process a payment notification, guarding the paid amount."""

    raw_body = Text(required=True)
    signature = String(max_length=SIGNATURE_MAX_LENGTH)


def _authenticate(raw_body: str, signature: str | None) -> PaymentNotificationPayload | NotificationResult:
    """Parse and verify a raw notification body.

    Returns the parsed payload, or the terminal result when the body is
    unreadable, unsigned or incomplete.
    """
    try:
        body = json.loads(raw_body)
    except (TypeError, ValueError):
        logger.warning("notification_unreadable_body")
        return NotificationResult(outcome=NotificationOutcome.MALFORMED, detail="invalid json")

    if not verify_signature(body, signature, get_settings().nowpayments_ipn_secret):
        logger.warning("notification_bad_signature")
        return NotificationResult(outcome=NotificationOutcome.REJECTED_SIGNATURE)

    try:
        return PaymentNotificationPayload.model_validate(body)
    except PayloadValidationError as exc:
        logger.warning("notification_malformed", errors=exc.errors(include_url=False))
        return NotificationResult(outcome=NotificationOutcome.MALFORMED, detail="missing or invalid order id")


def _shortfall(notification: PaymentNotificationPayload, expected: float, currency: str | None) -> str | None:
    """Why the notified payment does not cover ``expected``, or None when it does.

    Amounts are only comparable in the invoice's own currency, so a
    missing or different ``price_currency`` counts as not covered.
    """
    paid = notification.price_amount
    paid_currency = (notification.price_currency or "").strip().upper()
    expected_currency = (currency or "").strip().upper()
    if paid is None:
        return f"expected {expected} {currency}, got no amount"
    if paid_currency != expected_currency:
        return f"expected {expected} {currency}, got {paid} {notification.price_currency or 'without currency'}"
    if paid + AMOUNT_EPSILON < expected:
        return f"expected {expected} {currency}, got {paid}"
    return None


def _settle(mapping: InvoiceMapping, final_order_id: str | None) -> None:
    mapping.mark_settled(final_order_id)
    current_domain.repository_for(InvoiceMapping).add(mapping)


@bridge.command_handler(part_of=InvoiceMapping)
class PaymentNotificationHandler:
    @handle(HandlePaymentNotification)
    def handle_notification(self, command: HandlePaymentNotification) -> NotificationResult:
        notification = _authenticate(command.raw_body, command.signature)
        if isinstance(notification, NotificationResult):
            return notification

        order_ref = notification.order_id
        status = notification.payment_status
        logger.info("notification_received", order_ref=order_ref, status=status)

        mapping = current_domain.repository_for(InvoiceMapping).record_notification(
            order_ref,
            status,
            paid_amount=notification.price_amount,
            currency=notification.price_currency,
        )

        required = get_settings().required_statuses
        if status not in required:
            logger.info("notification_status_not_final", order_ref=order_ref, status=status, required=sorted(required))
            return NotificationResult(outcome=NotificationOutcome.IGNORED, order_ref=order_ref)

        if not is_draft_order_id(order_ref):
            logger.info("notification_order_already_completed", order_ref=order_ref)
            return NotificationResult(outcome=NotificationOutcome.ALREADY_COMPLETED, order_ref=order_ref)

        result = get_catalog().complete_or_mark_paid(order_ref, mapping.shop)
        if not result.ok:
            logger.error("notification_completion_failed", order_ref=order_ref, error=result.error, errors=result.warnings)
            return NotificationResult(
                outcome=NotificationOutcome.COMPLETE_FAILED,
                order_ref=order_ref,
                detail=result.error,
            )

        _settle(mapping, result.final_order_id)
        logger.info("notification_completed", order_ref=order_ref, final_order_id=result.final_order_id)
        return NotificationResult(
            outcome=NotificationOutcome.COMPLETED,
            order_ref=order_ref,
            final_order_id=result.final_order_id,
        )

    @handle(HandleGuardedPaymentNotification)
    def handle_guarded_notification(self, command: HandleGuardedPaymentNotification) -> NotificationResult:
        notification = _authenticate(command.raw_body, command.signature)
        if isinstance(notification, NotificationResult):
            return notification

        order_ref = notification.order_id
        status = notification.payment_status
        repo = current_domain.repository_for(InvoiceMapping)

        # Only orders that went through this bridge are acted upon
        if repo.find(order_ref) is None:
            logger.warning("notification_unmapped_ignored", order_ref=order_ref)
            return NotificationResult(outcome=NotificationOutcome.IGNORED_UNMAPPED, order_ref=order_ref)

        mapping = repo.record_notification(
            order_ref,
            status,
            paid_amount=notification.price_amount,
            currency=notification.price_currency,
        )

        expected = mapping.expected_amount or 0.0
        if expected:
            shortfall = _shortfall(notification, expected, mapping.currency)
            if shortfall:
                logger.warning(
                    "notification_underpaid",
                    order_ref=order_ref,
                    expected=expected,
                    currency=mapping.currency,
                    paid=notification.price_amount,
                    paid_currency=notification.price_currency,
                )
                return NotificationResult(outcome=NotificationOutcome.UNDERPAID, order_ref=order_ref, detail=shortfall)

        required = get_settings().required_statuses
        if status not in required:
            return NotificationResult(outcome=NotificationOutcome.IGNORED, order_ref=order_ref)

        catalog = get_catalog()
        try:
            ensure_payable(catalog.resolve_by_id(order_ref, mapping.shop), order_ref)
        except CatalogConflict as exc:
            logger.warning("notification_order_not_payable", order_ref=order_ref, status=exc.status)
            return NotificationResult(outcome=NotificationOutcome.CONFLICT, order_ref=order_ref, detail=str(exc))
        except CatalogError as exc:
            logger.error("notification_order_lookup_failed", order_ref=order_ref, error=str(exc))
            return NotificationResult(outcome=NotificationOutcome.COMPLETE_FAILED, order_ref=order_ref, detail=str(exc))

        result = catalog.complete_or_mark_paid(order_ref, mapping.shop)
        if not result.ok:
            logger.error("notification_mark_paid_failed", order_ref=order_ref, error=result.error)
            return NotificationResult(
                outcome=NotificationOutcome.COMPLETE_FAILED,
                order_ref=order_ref,
                detail=result.error,
            )

        _settle(mapping, result.final_order_id)
        return NotificationResult(
            outcome=NotificationOutcome.COMPLETED,
            order_ref=order_ref,
            final_order_id=result.final_order_id,
        )
