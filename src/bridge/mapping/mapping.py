"""InvoiceMapping aggregate — the durable record of an order's last invoice.

One record is written per Order Reference alias (raw id, normalised
global id, display name). The aggregate identifier is the URL-safe
encoding of that alias, so any alias resolves in a single lookup.

Lifecycle:
    created on first invoice issuance OR first payment notification
    (a notification-first record is a placeholder with an empty invoice URL)
    merged on every re-resolution (absent values never clear stored ones)
    optionally purged once the order settles

Invariant: a non-empty ``invoice_url`` is authoritative until either the
expected Money changes or the order settles.
"""

import base64
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String

from bridge.catalog.snapshot import DEFAULT_CURRENCY, STORED_REF_MAX_LENGTH, Money
from bridge.domain import bridge
from bridge.mapping.events import (
    InvoiceIssued,
    OrderSettled,
    PaymentNotificationRecorded,
)


# base64 of the longest reference at four UTF-8 bytes per character
MAPPING_KEY_MAX_LENGTH = 4 * ((4 * STORED_REF_MAX_LENGTH + 2) // 3)


def mapping_key_for(order_ref: str) -> str:
    """URL-safe, padding-free encoding of an order reference."""
    if not order_ref:
        raise ValidationError({"order_ref": ["Order reference is required"]})
    return base64.urlsafe_b64encode(order_ref.encode("utf-8")).decode("ascii").rstrip("=")


@bridge.aggregate
class InvoiceMapping:
    mapping_key = String(identifier=True, max_length=MAPPING_KEY_MAX_LENGTH)
    order_ref = String(required=True, max_length=STORED_REF_MAX_LENGTH)
    order_id = String(max_length=STORED_REF_MAX_LENGTH)
    order_name = String(max_length=STORED_REF_MAX_LENGTH)
    invoice_url = String(max_length=1000, default="")
    expected_amount = Float(default=0.0)
    currency = String(max_length=10, default=DEFAULT_CURRENCY)
    shop = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    # Notification bookkeeping
    last_payment_status = String(max_length=50)
    last_paid_amount = Float()
    notification_count = Integer(default=0)
    settled_at = DateTime()
    final_order_id = String(max_length=255)

    @classmethod
    def open(
        cls,
        order_ref: str,
        order_id: str | None = None,
        order_name: str | None = None,
        invoice_url: str | None = None,
        expected_amount: float | None = None,
        currency: str | None = None,
        shop: str | None = None,
    ) -> "InvoiceMapping":
        """Create a record for ``order_ref`` with absent values normalised.

        Missing amount becomes 0, missing currency "USD", missing URL the
        empty-string sentinel, and missing tenant None.
        """
        now = datetime.now(UTC)
        return cls(
            mapping_key=mapping_key_for(order_ref),
            order_ref=order_ref,
            order_id=order_id or order_ref,
            order_name=order_name,
            invoice_url=invoice_url or "",
            expected_amount=expected_amount if expected_amount is not None else 0.0,
            currency=currency or DEFAULT_CURRENCY,
            shop=shop or None,
            created_at=now,
            updated_at=now,
        )

    @property
    def has_invoice(self) -> bool:
        return bool(self.invoice_url)

    @property
    def expected(self) -> Money:
        return Money(amount=self.expected_amount or 0.0, currency=self.currency or DEFAULT_CURRENCY)

    def merge(
        self,
        order_id: str | None = None,
        order_name: str | None = None,
        invoice_url: str | None = None,
        expected_amount: float | None = None,
        currency: str | None = None,
        shop: str | None = None,
    ) -> None:
        """Overwrite the fields that were supplied; leave the rest untouched."""
        if order_id is not None:
            self.order_id = order_id
        if order_name is not None:
            self.order_name = order_name
        if invoice_url is not None:
            self.invoice_url = invoice_url
        if expected_amount is not None:
            self.expected_amount = expected_amount
        if currency is not None:
            self.currency = currency
        if shop is not None:
            self.shop = shop
        self.updated_at = datetime.now(UTC)

    def quotes(self, live: Money) -> bool:
        """True when this record's invoice was issued for exactly ``live``."""
        return self.has_invoice and self.expected.same_as(live)

    def announce_invoice(self, email: str | None = None) -> None:
        """Raise InvoiceIssued for the invoice currently on this record."""
        self.raise_(
            InvoiceIssued(
                mapping_key=self.mapping_key,
                order_id=self.order_id or self.order_ref,
                order_name=self.order_name,
                email=email,
                invoice_url=self.invoice_url,
                amount=self.expected_amount,
                currency=self.currency,
                issued_at=self.updated_at or datetime.now(UTC),
            )
        )

    def record_notification(self, payment_status: str, paid_amount: float | None, currency: str | None) -> None:
        """Bookkeeping for an inbound notification. Never touches the invoice fields."""
        now = datetime.now(UTC)
        self.last_payment_status = payment_status
        self.last_paid_amount = paid_amount
        self.notification_count = (self.notification_count or 0) + 1
        self.updated_at = now
        self.raise_(
            PaymentNotificationRecorded(
                mapping_key=self.mapping_key,
                order_ref=self.order_ref,
                payment_status=payment_status,
                paid_amount=paid_amount,
                currency=currency,
                notification_count=self.notification_count,
                received_at=now,
            )
        )

    def mark_settled(self, final_order_id: str | None = None) -> None:
        now = datetime.now(UTC)
        self.settled_at = now
        if final_order_id:
            self.final_order_id = final_order_id
        self.updated_at = now
        self.raise_(
            OrderSettled(
                mapping_key=self.mapping_key,
                order_ref=self.order_ref,
                order_name=self.order_name,
                final_order_id=final_order_id,
                settled_at=now,
            )
        )
