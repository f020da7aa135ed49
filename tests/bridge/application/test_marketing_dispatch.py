"""Tests for InvoiceMarketingDispatcher — InvoiceIssued → marketing platform."""

from datetime import UTC, datetime

import pytest
from bridge.mapping.events import InvoiceIssued
from bridge.marketing.dispatch import InvoiceMarketingDispatcher
from bridge.reconciliation.outcomes import ResolutionOutcome
from bridge.reconciliation.resolution import ResolveInvoice
from protean import current_domain

ORDER_GID = "gid://shopify/Order/1001"


def _issued(email="buyer@example.com", order_name="#1001"):
    return InvoiceIssued(
        mapping_key="Z2lk",
        order_id=ORDER_GID,
        order_name=order_name,
        email=email,
        invoice_url="https://pay.example.test/invoice?iid=5000",
        amount=25.0,
        currency="USD",
        issued_at=datetime.now(UTC),
    )


class TestDispatcher:
    def test_sends_invoice_created(self, marketing):
        InvoiceMarketingDispatcher().on_invoice_issued(_issued())

        assert len(marketing.sent) == 1
        sent = marketing.sent[0]
        assert sent.email == "buyer@example.com"
        assert sent.order_name == "#1001"
        assert sent.amount == 25.0

    def test_falls_back_to_order_id_for_name(self, marketing):
        InvoiceMarketingDispatcher().on_invoice_issued(_issued(order_name=None))
        assert marketing.sent[0].order_name == ORDER_GID

    def test_skipped_without_email(self, marketing):
        InvoiceMarketingDispatcher().on_invoice_issued(_issued(email=None))
        assert marketing.sent == []

    def test_failure_is_swallowed(self, marketing):
        marketing.configure(should_fail=True)
        InvoiceMarketingDispatcher().on_invoice_issued(_issued())
        assert marketing.sent == []


class TestIssuanceAnnouncesOnce:
    @pytest.fixture()
    def order(self, catalog):
        return catalog.add_order(ORDER_GID, "#1001", 25.0, email="buyer@example.com")

    def test_one_event_for_many_aliases(self, collaborators, order):
        result = current_domain.process(ResolveInvoice(order_name="#1001"), asynchronous=False)

        assert result.outcome == ResolutionOutcome.ISSUED
        sent = collaborators["marketing"].sent
        assert len(sent) == 1
        assert sent[0].invoice_url == result.invoice_url

    def test_marketing_failure_does_not_fail_issuance(self, collaborators, order):
        collaborators["marketing"].configure(should_fail=True)

        result = current_domain.process(ResolveInvoice(order_id=ORDER_GID), asynchronous=False)

        assert result.outcome == ResolutionOutcome.ISSUED
        assert result.invoice_url

    def test_reuse_sends_nothing(self, collaborators, order):
        current_domain.process(ResolveInvoice(order_id=ORDER_GID), asynchronous=False)
        current_domain.process(ResolveInvoice(order_id=ORDER_GID), asynchronous=False)

        assert len(collaborators["marketing"].sent) == 1
