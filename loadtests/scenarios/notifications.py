"""Payment notification load test scenarios.

Replays the status sequence a real payment goes through
(waiting → confirming → finished) and then repeats the final
notification, which must stay a no-op for the storefront.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import draft_order_gid, notification_body, signed
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import NotificationState

_ACKNOWLEDGED = {"ignored", "OK", "already_completed", "complete_failed", "ok"}


def _post_notification(client, body: dict, name: str, signature: str | None = None):
    return client.post(
        "/ipn/nowpayments",
        json=body,
        headers={"x-nowpayments-sig": signature if signature is not None else signed(body)},
        catch_response=True,
        name=name,
    )


class PaymentLifecycleJourney(SequentialTaskSet):
    def on_start(self):
        self.state = NotificationState(order_ref=draft_order_gid(), amount=round(random.uniform(5, 500), 2))

    def _report(self, status: str):
        body = notification_body(self.state.order_ref, status=status, amount=self.state.amount)
        with _post_notification(self.client, body, f"POST /ipn/nowpayments ({status})") as resp:
            if resp.status_code == 200 and resp.text in _ACKNOWLEDGED:
                self.state.statuses.append(status)
            else:
                resp.failure(f"Notification {status} failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def waiting(self):
        self._report("waiting")

    @task
    def confirming(self):
        self._report("confirming")

    @task
    def finished(self):
        self._report("finished")

    @task
    def finished_again(self):
        self._report("finished")

    @task
    def done(self):
        self.interrupt()


class TamperedNotificationJourney(SequentialTaskSet):
    """Unsigned and mis-signed notifications must be rejected with 401."""

    @task
    def tampered(self):
        body = notification_body(draft_order_gid(), status="finished")
        with _post_notification(self.client, body, "POST /ipn/nowpayments (bad signature)", signature="0" * 128) as resp:
            if resp.status_code == 401:
                resp.success()
            else:
                resp.failure(f"Tampered notification accepted: {resp.status_code}")

    @task
    def done(self):
        self.interrupt()


class NotificationUser(HttpUser):
    wait_time = between(0.2, 1.0)
    tasks = {PaymentLifecycleJourney: 5, TamperedNotificationJourney: 1}
