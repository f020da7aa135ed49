"""Faker-based data generators for Locust load test scenarios.

Notification bodies are signed with the same canonical HMAC the bridge
verifies, using LOADTEST_IPN_SECRET (which must match the target's
NOWPAYMENTS_IPN_SECRET). Order references are random, so against a
freshly started bridge most lookups are misses; seed the catalog to
exercise the issuing path.
"""

import os
import random
import uuid

from faker import Faker

from bridge.processor.signature import sign

fake = Faker()

IPN_SECRET = os.environ.get("LOADTEST_IPN_SECRET", "loadtest-ipn-secret")

# ---------- Order references ----------


def order_number() -> int:
    return random.randint(1000, 999999)


def order_gid(number: int | None = None) -> str:
    return f"gid://shopify/Order/{number or order_number()}"


def draft_order_gid(number: int | None = None) -> str:
    return f"gid://shopify/DraftOrder/{number or order_number()}"


def order_name(number: int | None = None) -> str:
    return f"#{number or order_number()}"


def customer_email() -> str:
    return f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}"


# ---------- Notifications ----------


def notification_body(order_ref: str, status: str = "waiting", amount: float | None = None) -> dict:
    """A NOWPayments-style notification body."""
    price = amount if amount is not None else round(random.uniform(5, 500), 2)
    return {
        "payment_id": random.randint(10**9, 10**10 - 1),
        "invoice_id": random.randint(10**9, 10**10 - 1),
        "payment_status": status,
        "pay_address": fake.sha1()[:34],
        "price_amount": price,
        "price_currency": "usd",
        "pay_amount": round(price / random.uniform(20000, 70000), 8),
        "pay_currency": random.choice(["btc", "eth", "usdttrc20", "ltc"]),
        "order_id": order_ref,
        "order_description": f"Invoice for {order_ref}",
        "outcome_amount": round(price * 0.995, 2),
        "outcome_currency": "usd",
    }


def signed(body: dict, secret: str = IPN_SECRET) -> str:
    return sign(body, secret)


# ---------- Webhooks ----------


def orders_create_webhook(number: int | None = None) -> dict:
    number = number or order_number()
    return {
        "id": number,
        "admin_graphql_api_id": order_gid(number),
        "name": order_name(number),
        "email": customer_email(),
        "currency": "USD",
        "total_price": f"{random.uniform(5, 500):.2f}",
    }
