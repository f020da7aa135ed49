"""Mixed bridge workload scenario.

Combines customer-driven invoice lookups, processor notifications and
storefront webhooks with weights that model a live shop. This is the
recommended scenario for load baseline testing.
"""

from locust import HttpUser, between, task

from loadtests.data_generators import orders_create_webhook
from loadtests.scenarios.invoices import InvoiceRedirectJourney, PayPageJourney
from loadtests.scenarios.notifications import PaymentLifecycleJourney, TamperedNotificationJourney


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    Invoices (55%):
    - Redirect journey: every checkout link click
    - Pay page: customers who come back by order number

    Notifications (35%):
    - Payment lifecycle: several notifications per payment
    - Tampered: scanners and misconfigured secrets

    Webhooks and health (10%)
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        InvoiceRedirectJourney: 8,
        PayPageJourney: 3,
        PaymentLifecycleJourney: 6,
        TamperedNotificationJourney: 1,
    }

    @task(1)
    def orders_create(self):
        # Unsigned: only accepted when the target runs without SHOPIFY_API_SECRET
        self.client.post("/webhooks/orders-create", json=orders_create_webhook(), name="POST /webhooks/orders-create")

    @task(1)
    def health(self):
        self.client.get("/health", name="GET /health")
