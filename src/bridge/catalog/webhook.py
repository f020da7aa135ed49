"""Storefront webhook authentication (X-Shopify-Hmac-Sha256)."""

import base64
import hashlib
import hmac


def verify_webhook_hmac(raw_body: bytes, header: str | None, secret: str | None) -> bool:
    """Base64 HMAC-SHA256 of the raw request body, compared in constant time."""
    if not header or not secret:
        return False
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    expected = base64.b64encode(digest)
    return hmac.compare_digest(expected, header.strip().encode("utf-8"))
