"""Domain events for the InvoiceMapping aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from bridge.catalog.snapshot import STORED_REF_MAX_LENGTH
from bridge.domain import bridge


@bridge.event(part_of="InvoiceMapping")
class InvoiceIssued:
    """A fresh processor invoice was issued for an order."""

    __version__ = 1

    mapping_key = Identifier(required=True)
    order_id = String(required=True, max_length=STORED_REF_MAX_LENGTH)
    order_name = String(max_length=STORED_REF_MAX_LENGTH)
    email = String(max_length=255)
    invoice_url = String(required=True, max_length=1000)
    amount = Float(required=True)
    currency = String(required=True, max_length=10)
    issued_at = DateTime(required=True)


@bridge.event(part_of="InvoiceMapping")
class PaymentNotificationRecorded:
    """The processor reported a payment status for an order."""

    __version__ = 1

    mapping_key = Identifier(required=True)
    order_ref = String(required=True, max_length=STORED_REF_MAX_LENGTH)
    payment_status = String(max_length=50)
    paid_amount = Float()
    currency = String(max_length=10)
    notification_count = Integer()
    received_at = DateTime(required=True)


@bridge.event(part_of="InvoiceMapping")
class OrderSettled:
    """The storefront order behind a mapping was completed or marked paid."""

    __version__ = 1

    mapping_key = Identifier(required=True)
    order_ref = String(required=True, max_length=STORED_REF_MAX_LENGTH)
    order_name = String(max_length=STORED_REF_MAX_LENGTH)
    final_order_id = String(max_length=255)
    settled_at = DateTime(required=True)
