"""Tests for HandlePaymentNotification — the default notification flow."""

import json

import pytest
from bridge.mapping.mapping import InvoiceMapping
from bridge.processor.signature import sign
from bridge.reconciliation.notification import HandlePaymentNotification
from bridge.reconciliation.outcomes import NotificationOutcome
from bridge.settings import Settings, set_settings
from protean import current_domain

IPN_SECRET = "test-ipn-secret"
DRAFT_GID = "gid://shopify/DraftOrder/9"


def _notify(body, signature=None, secret=IPN_SECRET):
    payload = json.dumps(body)
    if signature is None:
        signature = sign(body, secret)
    return current_domain.process(HandlePaymentNotification(raw_body=payload, signature=signature), asynchronous=False)


def _body(status="finished", order_id=DRAFT_GID, amount=10):
    return {"order_id": order_id, "payment_status": status, "price_amount": amount, "price_currency": "usd"}


def _mapping(reference=DRAFT_GID):
    return current_domain.repository_for(InvoiceMapping).find(reference)


@pytest.fixture()
def draft(catalog):
    return catalog.add_order(DRAFT_GID, "D9", 10.0)


class TestAuthentication:
    def test_bad_signature_rejected_without_side_effects(self, collaborators, draft):
        result = _notify(_body(), signature="0" * 128)

        assert result.outcome == NotificationOutcome.REJECTED_SIGNATURE
        assert _mapping() is None
        assert collaborators["catalog"].mutation_attempts == []

    def test_missing_signature_rejected(self, collaborators, draft):
        assert _notify(_body(), signature="").outcome == NotificationOutcome.REJECTED_SIGNATURE

    def test_unconfigured_secret_rejects_everything(self, collaborators, draft):
        set_settings(Settings(app_url="https://bridge.example.test"))
        assert _notify(_body()).outcome == NotificationOutcome.REJECTED_SIGNATURE

    def test_invalid_json_is_malformed(self, collaborators):
        result = current_domain.process(
            HandlePaymentNotification(raw_body="{not json", signature="abc"), asynchronous=False
        )
        assert result.outcome == NotificationOutcome.MALFORMED

    def test_signed_body_without_order_id_is_malformed(self, collaborators):
        body = {"payment_status": "finished", "price_amount": 10}
        result = _notify(body)

        assert result.outcome == NotificationOutcome.MALFORMED
        assert current_domain.repository_for(InvoiceMapping)._dao.query.all().items == []


class TestCommand:
    def test_raw_body_carried_verbatim(self):
        command = HandlePaymentNotification(raw_body='{"order_id": "1"}', signature="abc")

        assert command.raw_body == '{"order_id": "1"}'
        assert command.to_dict()["raw_body"] == '{"order_id": "1"}'

    def test_signed_command_processed_end_to_end(self, collaborators, draft):
        body = _body()
        command = HandlePaymentNotification(raw_body=json.dumps(body), signature=sign(body, IPN_SECRET))

        result = current_domain.process(command, asynchronous=False)

        assert result.outcome == NotificationOutcome.COMPLETED


class TestOrderReferenceLength:
    def test_long_reference_recorded(self, collaborators):
        reference = "D" * 300

        result = _notify(_body(status="waiting", order_id=reference))

        assert result.outcome == NotificationOutcome.IGNORED
        assert _mapping(reference).last_payment_status == "waiting"

    def test_reference_over_limit_is_malformed(self, collaborators):
        result = _notify(_body(order_id="D" * 2000))

        assert result.outcome == NotificationOutcome.MALFORMED
        assert current_domain.repository_for(InvoiceMapping)._dao.query.all().items == []


class TestNonFinalStatus:
    def test_waiting_is_recorded_and_ignored(self, collaborators, draft):
        result = _notify(_body(status="waiting"))

        assert result.outcome == NotificationOutcome.IGNORED
        mapping = _mapping()
        assert mapping is not None
        assert mapping.invoice_url == ""
        assert mapping.expected_amount == 10.0
        assert mapping.last_payment_status == "waiting"
        assert collaborators["catalog"].mutation_attempts == []

    def test_status_compared_case_insensitively(self, collaborators, draft):
        assert _notify(_body(status="FINISHED")).outcome == NotificationOutcome.COMPLETED

    def test_confirmed_not_final_by_default(self, collaborators, draft):
        assert _notify(_body(status="confirmed")).outcome == NotificationOutcome.IGNORED

    def test_configured_final_statuses(self, collaborators, draft):
        set_settings(
            Settings(
                app_url="https://bridge.example.test",
                nowpayments_ipn_secret=IPN_SECRET,
                required_statuses=frozenset({"finished", "confirmed"}),
            )
        )
        assert _notify(_body(status="confirmed")).outcome == NotificationOutcome.COMPLETED


class TestFinalStatus:
    def test_draft_completed(self, collaborators, draft):
        result = _notify(_body())

        catalog = collaborators["catalog"]
        assert result.outcome == NotificationOutcome.COMPLETED
        assert result.final_order_id is not None
        assert catalog.effective_mutations == [DRAFT_GID]

        mapping = _mapping()
        assert mapping.settled_at is not None
        assert mapping.final_order_id == result.final_order_id

    def test_repeated_notification_mutates_once(self, collaborators, draft):
        results = [_notify(_body()) for _ in range(3)]

        catalog = collaborators["catalog"]
        assert [r.outcome for r in results] == [NotificationOutcome.COMPLETED] * 3
        assert catalog.effective_mutations == [DRAFT_GID]
        assert len(catalog.mutation_attempts) == 3
        assert _mapping().notification_count == 3

    def test_existing_invoice_fields_preserved(self, collaborators, draft):
        current_domain.repository_for(InvoiceMapping).save_mapping(
            DRAFT_GID,
            invoice_url="https://pay.example.test/invoice?iid=1",
            expected_amount=10.0,
            currency="USD",
        )

        _notify(_body(amount=3))

        mapping = _mapping()
        assert mapping.invoice_url == "https://pay.example.test/invoice?iid=1"
        assert mapping.expected_amount == 10.0
        assert mapping.currency == "USD"

    def test_order_reference_acknowledged_without_mutation(self, collaborators, catalog):
        catalog.add_order("gid://shopify/Order/1001", "#1001", 10.0)

        result = _notify(_body(order_id="gid://shopify/Order/1001"))

        assert result.outcome == NotificationOutcome.ALREADY_COMPLETED
        assert catalog.mutation_attempts == []

    def test_completion_failure_is_acknowledged(self, collaborators, draft):
        collaborators["catalog"].configure(mutation_error="Internal error")

        result = _notify(_body())

        assert result.outcome == NotificationOutcome.COMPLETE_FAILED
        assert "Internal error" in result.detail
        assert _mapping().settled_at is None
        assert _mapping().last_payment_status == "finished"

    def test_benign_catalog_error_counts_as_success(self, collaborators, draft):
        collaborators["catalog"].configure(mutation_error="Draft order has already been completed")

        assert _notify(_body()).outcome == NotificationOutcome.COMPLETED


class TestPurgeOnSettle:
    def test_mapping_purged_when_enabled(self, collaborators, draft):
        set_settings(
            Settings(
                app_url="https://bridge.example.test",
                nowpayments_ipn_secret=IPN_SECRET,
                purge_mapping_on_settle=True,
            )
        )

        assert _notify(_body()).outcome == NotificationOutcome.COMPLETED
        assert _mapping() is None

    def test_mapping_kept_by_default(self, collaborators, draft):
        _notify(_body())
        assert _mapping() is not None
