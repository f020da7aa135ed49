"""Shared BDD fixtures and step definitions for the bridge."""

import pytest
from bridge.catalog.snapshot import Money, OrderKind, OrderSnapshot
from bridge.mapping.mapping import InvoiceMapping
from protean import current_domain
from pytest_bdd import given, parsers, then

IPN_SECRET = "test-ipn-secret"


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def ipn_secret():
    return IPN_SECRET


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the collaborators are faked")
def _(collaborators):
    return collaborators


@given(parsers.cfparse('an order "{order_ref}" named "{name}" owing {amount} {currency}'))
def _(catalog, order_ref, name, amount, currency):
    catalog.put(
        OrderSnapshot(
            id=order_ref,
            name=name,
            kind=OrderKind.ORDER,
            financial_status="PENDING",
            currency_code=currency,
            outstanding_shop=Money(float(amount), currency),
        )
    )


@given(parsers.cfparse('an order "{order_ref}" named "{name}" with status "{status}"'))
def _(catalog, order_ref, name, status):
    catalog.add_order(order_ref, name, 0.0, status=status)


@given(parsers.cfparse('a draft order "{order_ref}" owing {amount} {currency}'))
def _(catalog, order_ref, amount, currency):
    catalog.add_order(order_ref, order_ref.rsplit("/", 1)[-1], float(amount), currency)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('a mapping for "{order_ref}" records status "{status}"'))
def _(order_ref, status):
    mapping = current_domain.repository_for(InvoiceMapping).find(order_ref)
    assert mapping is not None
    assert mapping.last_payment_status == status


@then(parsers.cfparse('a mapping for "{order_ref}" counts {count:d} notifications'))
def _(order_ref, count):
    mapping = current_domain.repository_for(InvoiceMapping).find(order_ref)
    assert mapping.notification_count == count


@then("the catalog was not asked to mutate anything")
def _(catalog):
    assert catalog.mutation_attempts == []


@then(parsers.cfparse('the catalog completed "{order_ref}" {count:d} time'))
def _(catalog, order_ref, count):
    assert catalog.effective_mutations.count(order_ref) == count
