"""Tests for the InvoiceMapping repository (the mapping store contract)."""

from bridge.mapping.mapping import InvoiceMapping
from protean import current_domain


def _repo():
    return current_domain.repository_for(InvoiceMapping)


class TestSaveMapping:
    def test_save_then_find(self):
        _repo().save_mapping(
            "gid://shopify/Order/1001",
            order_name="#1001",
            invoice_url="https://pay.example.test/invoice?iid=1",
            expected_amount=25.0,
            currency="USD",
            shop="example.myshopify.com",
        )

        mapping = _repo().find("gid://shopify/Order/1001")
        assert mapping is not None
        assert mapping.invoice_url == "https://pay.example.test/invoice?iid=1"
        assert mapping.expected_amount == 25.0
        assert mapping.shop == "example.myshopify.com"

    def test_find_unknown_returns_none(self):
        assert _repo().find("gid://shopify/Order/404") is None

    def test_find_empty_reference_returns_none(self):
        assert _repo().find("") is None

    def test_new_record_normalises_absent_fields(self):
        _repo().save_mapping("#1001")
        mapping = _repo().find("#1001")
        assert mapping.invoice_url == ""
        assert mapping.expected_amount == 0.0
        assert mapping.currency == "USD"
        assert mapping.shop is None

    def test_upsert_merges_rather_than_replaces(self):
        _repo().save_mapping(
            "#1001",
            invoice_url="https://pay.example.test/invoice?iid=1",
            expected_amount=25.0,
            shop="example.myshopify.com",
        )
        _repo().save_mapping("#1001", order_name="#1001")

        mapping = _repo().find("#1001")
        assert mapping.invoice_url == "https://pay.example.test/invoice?iid=1"
        assert mapping.expected_amount == 25.0
        assert mapping.shop == "example.myshopify.com"
        assert mapping.order_name == "#1001"

    def test_upsert_is_idempotent(self):
        for _ in range(3):
            _repo().save_mapping("#1001", invoice_url="https://pay.example.test/invoice?iid=1", expected_amount=25.0)

        assert len(_repo()._dao.query.all().items) == 1

    def test_keys_are_opaque(self):
        _repo().save_mapping("1001", invoice_url="https://pay.example.test/invoice?iid=1")
        assert _repo().find("gid://shopify/Order/1001") is None


class TestRecordNotification:
    def test_unknown_reference_gets_placeholder(self):
        _repo().record_notification("gid://shopify/DraftOrder/9", "waiting", paid_amount=10.0, currency="usd")

        mapping = _repo().find("gid://shopify/DraftOrder/9")
        assert mapping.invoice_url == ""
        assert mapping.expected_amount == 10.0
        assert mapping.currency == "usd"
        assert mapping.last_payment_status == "waiting"
        assert mapping.notification_count == 1

    def test_known_reference_keeps_invoice_and_amount(self):
        _repo().save_mapping(
            "gid://shopify/DraftOrder/9",
            invoice_url="https://pay.example.test/invoice?iid=1",
            expected_amount=25.0,
            currency="USD",
        )
        _repo().record_notification("gid://shopify/DraftOrder/9", "finished", paid_amount=3.0, currency="btc")

        mapping = _repo().find("gid://shopify/DraftOrder/9")
        assert mapping.invoice_url == "https://pay.example.test/invoice?iid=1"
        assert mapping.expected_amount == 25.0
        assert mapping.currency == "USD"
        assert mapping.last_payment_status == "finished"
        assert mapping.last_paid_amount == 3.0


class TestDeleteMapping:
    def test_delete_removes_record(self):
        _repo().save_mapping("#1001", invoice_url="https://pay.example.test/invoice?iid=1")
        _repo().delete_mapping("#1001")
        assert _repo().find("#1001") is None

    def test_delete_unknown_is_a_no_op(self):
        _repo().delete_mapping("#404")
        assert _repo().find("#404") is None
