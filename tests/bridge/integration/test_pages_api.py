"""Integration tests for the customer-facing pay pages."""

import pytest

ORDER_GID = "gid://shopify/Order/1001"


@pytest.fixture()
def order(catalog):
    return catalog.add_order(ORDER_GID, "#1001", 25.0, email="buyer@example.com")


class TestPayForm:
    def test_renders_form(self, client):
        response = client.get("/pay")

        assert response.status_code == 200
        assert 'action="/pay/start"' in response.text


class TestStartPay:
    def test_order_number_opens_invoice_frame(self, client, order):
        response = client.post("/pay/start", data={"order": "1001", "email": "Buyer@Example.com"})

        assert response.status_code == 200
        assert '<iframe src="https://pay.example.test/invoice?iid=5000"' in response.text
        assert "#1001 - Crypto Invoice" in response.text

    def test_order_id_accepted(self, client, order):
        response = client.post("/pay/start", data={"order": ORDER_GID})
        assert "<iframe" in response.text

    def test_missing_order(self, client):
        response = client.post("/pay/start", data={"order": "  "})
        assert response.status_code == 400

    def test_unknown_order(self, client):
        response = client.post("/pay/start", data={"order": "#9999"})
        assert response.status_code == 404

    def test_email_mismatch(self, client, processor, order):
        response = client.post("/pay/start", data={"order": "#1001", "email": "someone@else.com"})

        assert response.status_code == 403
        assert processor.calls == []

    def test_settled_order(self, client, catalog):
        catalog.add_order(ORDER_GID, "#1001", 0.0, status="PAID")

        response = client.post("/pay/start", data={"order": "#1001"})

        assert response.status_code == 200
        assert "Already paid" in response.text

    def test_reuses_cached_invoice(self, client, processor, order):
        client.post("/pay/start", data={"order": "#1001"})
        client.post("/pay/start", data={"order": "#1001"})

        assert len(processor.calls) == 1


class TestReturnPages:
    def test_success_page_escapes_reference(self, client):
        response = client.get("/payment-success", params={"order": "<script>x</script>"})

        assert response.status_code == 200
        assert "<script>x</script>" not in response.text
        assert "&lt;script&gt;" in response.text
        assert 'href="https://example.myshopify.com"' in response.text

    def test_cancel_page_links_back_to_invoice(self, client):
        response = client.get("/payment-cancel", params={"order": ORDER_GID})

        assert response.status_code == 200
        assert "/osr/invoice-url?orderId=gid%3A%2F%2Fshopify%2FOrder%2F1001" in response.text
