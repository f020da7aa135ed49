"""Invoice resolution — commands and handler.

Two deliberately separate paths answer "which invoice should this order
be paid with?":

ResolveInvoice (fast path, redirect endpoint)
    Any alias with a cached invoice URL wins immediately, without looking
    at the live order. A stale invoice is returned until something
    regenerates it. Only a cache miss reaches the catalog and processor.

ReconcileInvoice (amount check, JSON endpoint and order webhook)
    Always reads the live order first. The cached invoice is reused only
    when it was issued for exactly the live amount and currency;
    otherwise a fresh invoice replaces it.

OpenPaymentPage is the self-service pay page: it resolves the order the
customer typed, checks the email when one is given, then reuses or issues.

Every fresh invoice is written under all known aliases (catalog id, raw
reference, normalised reference, display name) so later requests using
any of them hit the cache. Concurrent misses for the same order are not
serialised; the last write wins.
"""

import re

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from bridge.catalog import get_catalog
from bridge.catalog.snapshot import (
    ORDER_REF_MAX_LENGTH,
    Money,
    OrderSnapshot,
    PaymentState,
    classify_status,
    extract_money,
    normalize_order_id,
)
from bridge.domain import bridge
from bridge.mapping.mapping import InvoiceMapping
from bridge.processor import get_processor
from bridge.processor.port import InvoiceRequest
from bridge.reconciliation.outcomes import InvoiceResolution, ResolutionOutcome
from bridge.settings import get_settings

logger = structlog.get_logger(__name__)

_ORDER_NUMBER = re.compile(r"^#?\d+$")


@bridge.command(part_of="InvoiceMapping")
class ResolveInvoice:
    """Find or issue the invoice for an order id or display name."""

    order_id = String(max_length=ORDER_REF_MAX_LENGTH)
    order_name = String(max_length=ORDER_REF_MAX_LENGTH)
    shop = String(max_length=255)


@bridge.command(part_of="InvoiceMapping")
class ReconcileInvoice:
    """Find or issue the invoice for an order, checking the live amount."""

    order_id = String(required=True, max_length=ORDER_REF_MAX_LENGTH)
    shop = String(max_length=255)


@bridge.command(part_of="InvoiceMapping")
class OpenPaymentPage:
    """Resolve the order a customer typed into the pay page."""

    order = String(required=True, max_length=ORDER_REF_MAX_LENGTH)
    email = String(max_length=255)


def aliases_for(*references: str | None) -> list[str]:
    """Distinct, non-empty references with each raw id followed by its normalised form."""
    keys: list[str] = []
    for reference in references:
        if not reference:
            continue
        keys.append(reference)
        keys.append(normalize_order_id(reference))
    return list(dict.fromkeys(k for k in keys if k))


def _settled(snapshot: OrderSnapshot) -> InvoiceResolution:
    money = extract_money(snapshot)
    logger.info("order_already_settled", order_ref=snapshot.id, status=snapshot.financial_status)
    return InvoiceResolution(
        outcome=ResolutionOutcome.SETTLED,
        order_ref=snapshot.id,
        order_name=snapshot.name,
        amount=0.0,
        currency=money.currency,
    )


def _nothing_owed(snapshot: OrderSnapshot, money: Money) -> InvoiceResolution:
    logger.warning("order_nothing_owed", order_ref=snapshot.id, amount=money.amount, currency=money.currency)
    return InvoiceResolution(
        outcome=ResolutionOutcome.NOTHING_OWED,
        order_ref=snapshot.id,
        order_name=snapshot.name,
        amount=money.amount,
        currency=money.currency,
    )


def _reused(mapping: InvoiceMapping, order_ref: str | None = None) -> InvoiceResolution:
    return InvoiceResolution(
        outcome=ResolutionOutcome.REUSED,
        order_ref=order_ref or mapping.order_id or mapping.order_ref,
        order_name=mapping.order_name,
        invoice_url=mapping.invoice_url,
        amount=mapping.expected_amount,
        currency=mapping.currency,
    )


def issue_invoice(
    snapshot: OrderSnapshot,
    money: Money,
    shop: str | None = None,
    extra_aliases: tuple = (),
) -> InvoiceResolution:
    """Issue a fresh invoice for ``snapshot`` and cache it under every alias.

    Only the canonical catalog-id record announces the invoice, so
    marketing hears about each issuance once.
    """
    settings = get_settings()
    canonical = snapshot.id

    issued = get_processor().create_invoice(
        InvoiceRequest(
            order_ref=canonical,
            amount=money.amount,
            currency=money.currency,
            success_url=settings.success_url(canonical),
            cancel_url=settings.cancel_url(canonical),
        )
    )

    repo = current_domain.repository_for(InvoiceMapping)
    tenant = shop or settings.shop or None
    for alias in aliases_for(canonical, *extra_aliases, snapshot.name):
        repo.save_mapping(
            alias,
            order_id=canonical,
            order_name=snapshot.name or None,
            invoice_url=issued.invoice_url,
            expected_amount=money.amount,
            currency=money.currency,
            shop=tenant,
            email=snapshot.email,
            announce=alias == canonical,
        )

    logger.info(
        "invoice_issued",
        order_ref=canonical,
        order_name=snapshot.name,
        amount=money.amount,
        currency=money.currency,
    )
    return InvoiceResolution(
        outcome=ResolutionOutcome.ISSUED,
        order_ref=canonical,
        order_name=snapshot.name,
        invoice_url=issued.invoice_url,
        amount=money.amount,
        currency=money.currency,
    )


def resolve_from_snapshot(snapshot: OrderSnapshot, shop: str | None = None, extra_aliases: tuple = ()) -> InvoiceResolution:
    """Settled check, payable amount, then a fresh invoice."""
    if classify_status(snapshot) == PaymentState.SETTLED:
        return _settled(snapshot)

    money = extract_money(snapshot)
    if not money.is_payable:
        return _nothing_owed(snapshot, money)

    return issue_invoice(snapshot, money, shop=shop, extra_aliases=extra_aliases)


@bridge.command_handler(part_of=InvoiceMapping)
class InvoiceResolutionHandler:
    @handle(ResolveInvoice)
    def resolve_invoice(self, command: ResolveInvoice) -> InvoiceResolution:
        if not command.order_id and not command.order_name:
            raise ValidationError({"order_id": ["orderId or orderName is required"]})

        repo = current_domain.repository_for(InvoiceMapping)
        for alias in aliases_for(command.order_id, command.order_name):
            mapping = repo.find(alias)
            if mapping is not None and mapping.has_invoice:
                logger.info("invoice_cache_hit", alias=alias)
                return _reused(mapping)

        catalog = get_catalog()
        if command.order_id:
            snapshot = catalog.resolve_by_id(normalize_order_id(command.order_id), command.shop)
        else:
            snapshot = catalog.resolve_by_name(command.order_name, command.shop)
        if snapshot is None:
            logger.warning("order_not_found", order_id=command.order_id, order_name=command.order_name)
            return InvoiceResolution(outcome=ResolutionOutcome.NOT_FOUND, order_ref=command.order_id or command.order_name)

        return resolve_from_snapshot(
            snapshot,
            shop=command.shop,
            extra_aliases=(command.order_id, command.order_name),
        )

    @handle(ReconcileInvoice)
    def reconcile_invoice(self, command: ReconcileInvoice) -> InvoiceResolution:
        order_ref = normalize_order_id(command.order_id)
        snapshot = get_catalog().resolve_by_id(order_ref, command.shop)
        if snapshot is None:
            logger.warning("order_not_found", order_id=command.order_id)
            return InvoiceResolution(outcome=ResolutionOutcome.NOT_FOUND, order_ref=order_ref)

        if classify_status(snapshot) == PaymentState.SETTLED:
            return _settled(snapshot)

        money = extract_money(snapshot)
        if not money.is_payable:
            return _nothing_owed(snapshot, money)

        cached = current_domain.repository_for(InvoiceMapping).find(order_ref)
        if cached is not None and cached.quotes(money):
            logger.info("invoice_reused_amount_matches", order_ref=order_ref, amount=money.amount)
            return _reused(cached, order_ref=snapshot.id)

        if cached is not None and cached.has_invoice:
            logger.info(
                "invoice_amount_changed",
                order_ref=order_ref,
                cached_amount=cached.expected_amount,
                cached_currency=cached.currency,
                live_amount=money.amount,
                live_currency=money.currency,
            )
        return issue_invoice(snapshot, money, shop=command.shop, extra_aliases=(command.order_id,))

    @handle(OpenPaymentPage)
    def open_payment_page(self, command: OpenPaymentPage) -> InvoiceResolution:
        typed = (command.order or "").strip()
        if not typed:
            raise ValidationError({"order": ["Missing order"]})

        catalog = get_catalog()
        if _ORDER_NUMBER.match(typed):
            snapshot = catalog.resolve_by_name(typed if typed.startswith("#") else f"#{typed}")
        else:
            snapshot = catalog.resolve_by_id(normalize_order_id(typed))
        if snapshot is None:
            return InvoiceResolution(outcome=ResolutionOutcome.NOT_FOUND, order_ref=typed)

        if command.email and snapshot.email and command.email.strip().lower() != snapshot.email.lower():
            logger.warning("pay_page_email_mismatch", order_ref=snapshot.id)
            return InvoiceResolution(
                outcome=ResolutionOutcome.EMAIL_MISMATCH,
                order_ref=snapshot.id,
                order_name=snapshot.name,
            )

        cached = current_domain.repository_for(InvoiceMapping).find(snapshot.id)
        if cached is not None and cached.has_invoice:
            return _reused(cached, order_ref=snapshot.id)

        return resolve_from_snapshot(snapshot)
