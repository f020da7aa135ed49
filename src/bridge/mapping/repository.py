"""Repository for the InvoiceMapping aggregate — the Mapping Store contract.

Keys are opaque: the repository never interprets aliases. Writing the
same record under every alias is the caller's job.
"""

import structlog
from protean.exceptions import ObjectNotFoundError

from bridge.domain import bridge
from bridge.mapping.mapping import InvoiceMapping, mapping_key_for

logger = structlog.get_logger(__name__)


@bridge.repository(part_of=InvoiceMapping)
class InvoiceMappingRepository:
    def find(self, order_ref: str) -> InvoiceMapping | None:
        """Look up the record stored under ``order_ref``; None when absent."""
        if not order_ref:
            return None
        try:
            return self.get(mapping_key_for(order_ref))
        except ObjectNotFoundError:
            return None

    def save_mapping(
        self,
        order_ref: str,
        order_id: str | None = None,
        order_name: str | None = None,
        invoice_url: str | None = None,
        expected_amount: float | None = None,
        currency: str | None = None,
        shop: str | None = None,
        email: str | None = None,
        announce: bool = False,
    ) -> InvoiceMapping:
        """Idempotent merge-upsert of the record under ``order_ref``.

        When ``announce`` is set the record raises InvoiceIssued, which is
        how the canonical alias (and only that one) notifies marketing.
        """
        mapping = self.find(order_ref)
        if mapping is None:
            mapping = InvoiceMapping.open(
                order_ref,
                order_id=order_id,
                order_name=order_name,
                invoice_url=invoice_url,
                expected_amount=expected_amount,
                currency=currency,
                shop=shop,
            )
        else:
            mapping.merge(
                order_id=order_id,
                order_name=order_name,
                invoice_url=invoice_url,
                expected_amount=expected_amount,
                currency=currency,
                shop=shop,
            )

        if announce:
            mapping.announce_invoice(email=email)

        self.add(mapping)
        return mapping

    def record_notification(
        self,
        order_ref: str,
        payment_status: str,
        paid_amount: float | None = None,
        currency: str | None = None,
    ) -> InvoiceMapping:
        """Leave an audit row for a notification.

        Unknown references get a placeholder record (empty invoice URL,
        expected amount taken from the notification). Known references
        only have their bookkeeping fields updated.
        """
        mapping = self.find(order_ref)
        if mapping is None:
            mapping = InvoiceMapping.open(
                order_ref,
                expected_amount=paid_amount,
                currency=currency,
            )
        mapping.record_notification(payment_status, paid_amount, currency)
        self.add(mapping)
        return mapping

    def delete_mapping(self, order_ref: str) -> None:
        """Best-effort removal; a missing record is not an error."""
        mapping = self.find(order_ref)
        if mapping is None:
            return
        try:
            self._dao.delete(mapping)
        except ObjectNotFoundError:
            logger.info("mapping_already_deleted", order_ref=order_ref)
