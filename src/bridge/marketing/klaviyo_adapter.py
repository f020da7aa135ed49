"""Klaviyo marketing adapter (track API)."""

import time

import httpx

from bridge.exceptions import MarketingError
from bridge.marketing.port import InvoiceCreatedEvent, MarketingPlatform
from bridge.settings import Settings, get_settings

TRACK_URL = "https://a.klaviyo.com/api/track"


class KlaviyoMarketing(MarketingPlatform):
    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings or get_settings()
        self._client = httpx.Client(timeout=httpx.Timeout(10.0), transport=transport)

    def send_invoice_created(self, event: InvoiceCreatedEvent) -> None:
        if not self.settings.klaviyo_public_token:
            raise MarketingError("Klaviyo public token missing (KLAVIYO_PUBLIC_TOKEN)")

        payload = {
            "token": self.settings.klaviyo_public_token,
            "event": self.settings.klaviyo_event_metric,
            "customer_properties": {"$email": event.email},
            "properties": {
                "order_name": event.order_name,
                "invoice_url": event.invoice_url,
                "amount": event.amount,
                "currency": event.currency,
            },
            "time": int(time.time()),
        }

        try:
            response = self._client.post(TRACK_URL, json=payload)
        except httpx.RequestError as exc:
            raise MarketingError(f"Klaviyo track request failed: {exc}") from exc
        if not response.is_success:
            raise MarketingError(f"Klaviyo track failed: {response.status_code} {response.text}")
