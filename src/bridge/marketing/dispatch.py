"""Marketing dispatch — tells the marketing platform about new invoices.

Runs after the issuing request's unit of work commits. A marketing
failure is logged and never reaches the customer who asked for the
invoice.
"""

import structlog
from protean.utils.mixins import handle

from bridge.domain import bridge
from bridge.exceptions import MarketingError
from bridge.mapping.events import InvoiceIssued
from bridge.mapping.mapping import InvoiceMapping
from bridge.marketing import get_marketing
from bridge.marketing.port import InvoiceCreatedEvent

logger = structlog.get_logger(__name__)


@bridge.event_handler(part_of=InvoiceMapping)
class InvoiceMarketingDispatcher:
    @handle(InvoiceIssued)
    def on_invoice_issued(self, event: InvoiceIssued) -> None:
        if not event.email:
            logger.info("invoice_marketing_skipped_no_email", order_id=event.order_id)
            return

        try:
            get_marketing().send_invoice_created(
                InvoiceCreatedEvent(
                    email=event.email,
                    order_name=event.order_name or event.order_id,
                    invoice_url=event.invoice_url,
                    amount=event.amount,
                    currency=event.currency,
                )
            )
        except MarketingError as exc:
            logger.error("invoice_marketing_failed", order_id=event.order_id, error=str(exc))
            return

        logger.info("invoice_marketing_sent", order_id=event.order_id)
