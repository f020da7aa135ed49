"""Shopify Admin GraphQL order catalog adapter.

Orders and draft orders are read through ``node(id:)`` (or the
``orders`` / ``draftOrders`` name search) and parsed into OrderSnapshots
here, so nothing past this module sees raw GraphQL payloads.
"""

import httpx
import structlog

from bridge.catalog.port import OrderCatalog
from bridge.catalog.snapshot import (
    OrderKind,
    OrderSnapshot,
    draft_financial_status,
    normalize_status,
    parse_money,
)
from bridge.exceptions import CatalogError, CatalogMutationFailed
from bridge.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

MONEY_BAG = "shopMoney { amount currencyCode } presentmentMoney { amount currencyCode }"

ORDER_FIELDS = f"""
    id
    name
    email
    currencyCode
    displayFinancialStatus
    totalOutstandingSet {{ {MONEY_BAG} }}
    totalPriceSet {{ {MONEY_BAG} }}
    currentSubtotalPriceSet {{ {MONEY_BAG} }}
"""

DRAFT_ORDER_FIELDS = f"""
    id
    name
    email
    currencyCode
    status
    totalPriceSet {{ {MONEY_BAG} }}
    subtotalPriceSet {{ {MONEY_BAG} }}
"""

NODE_QUERY = f"""
query OrderForInvoice($id: ID!) {{
  node(id: $id) {{
    __typename
    ... on Order {{ {ORDER_FIELDS} }}
    ... on DraftOrder {{ {DRAFT_ORDER_FIELDS} }}
  }}
}}
"""

ORDERS_BY_NAME_QUERY = f"""
query OrdersByName($query: String!) {{
  orders(first: 1, query: $query) {{ edges {{ node {{ {ORDER_FIELDS} }} }} }}
}}
"""

DRAFT_ORDERS_BY_NAME_QUERY = f"""
query DraftOrdersByName($query: String!) {{
  draftOrders(first: 1, query: $query) {{ edges {{ node {{ {DRAFT_ORDER_FIELDS} }} }} }}
}}
"""

DRAFT_ORDER_COMPLETE = """
mutation CompleteDraft($id: ID!) {
  draftOrderComplete(id: $id, paymentPending: false) {
    draftOrder { id status order { id } }
    userErrors { field message }
  }
}
"""

ORDER_MARK_AS_PAID = """
mutation MarkPaid($id: ID!) {
  orderMarkAsPaid(input: { id: $id }) {
    order { id displayFinancialStatus }
    userErrors { field message }
  }
}
"""


def _money_pair(node: dict, field: str) -> tuple:
    bag = node.get(field) or {}
    return parse_money(bag.get("shopMoney")), parse_money(bag.get("presentmentMoney"))


def snapshot_from_node(node: dict | None) -> OrderSnapshot | None:
    """Parse an Order or DraftOrder GraphQL node into an OrderSnapshot."""
    if not node or not node.get("id"):
        return None

    is_draft = node.get("__typename") == "DraftOrder" or "/DraftOrder/" in str(node["id"])
    total_shop, total_presentment = _money_pair(node, "totalPriceSet")

    if is_draft:
        subtotal_shop, subtotal_presentment = _money_pair(node, "subtotalPriceSet")
        return OrderSnapshot(
            id=node["id"],
            name=str(node.get("name") or ""),
            kind=OrderKind.DRAFT_ORDER,
            email=node.get("email"),
            financial_status=draft_financial_status(node.get("status")),
            currency_code=node.get("currencyCode"),
            total_shop=total_shop,
            total_presentment=total_presentment,
            subtotal_shop=subtotal_shop,
            subtotal_presentment=subtotal_presentment,
        )

    outstanding_shop, outstanding_presentment = _money_pair(node, "totalOutstandingSet")
    subtotal_shop, subtotal_presentment = _money_pair(node, "currentSubtotalPriceSet")
    return OrderSnapshot(
        id=node["id"],
        name=str(node.get("name") or ""),
        kind=OrderKind.ORDER,
        email=node.get("email"),
        financial_status=normalize_status(node.get("displayFinancialStatus") or node.get("financialStatus")),
        currency_code=node.get("currencyCode"),
        outstanding_shop=outstanding_shop,
        outstanding_presentment=outstanding_presentment,
        total_shop=total_shop,
        total_presentment=total_presentment,
        subtotal_shop=subtotal_shop,
        subtotal_presentment=subtotal_presentment,
    )


def _user_error_messages(payload: dict | None) -> list[str]:
    return [str(e.get("message", "")) for e in (payload or {}).get("userErrors") or []]


class ShopifyCatalog(OrderCatalog):
    name = "shopify"

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings or get_settings()
        self._client = httpx.Client(timeout=httpx.Timeout(30.0), transport=transport)

    def _endpoint(self, shop: str | None) -> str:
        domain = (shop or self.settings.shop).strip().lower()
        if not domain:
            raise CatalogError("No shop domain configured (SHOP)")
        return f"https://{domain}/admin/api/{self.settings.shopify_api_version}/graphql.json"

    def _graphql(self, query: str, variables: dict, shop: str | None) -> dict:
        try:
            response = self._client.post(
                self._endpoint(shop),
                json={"query": query, "variables": variables},
                headers={"X-Shopify-Access-Token": self.settings.shopify_access_token},
            )
        except httpx.RequestError as exc:
            raise CatalogError(f"Shopify request failed: {exc}") from exc

        if not response.is_success:
            raise CatalogError(f"Shopify responded {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as exc:
            raise CatalogError("Shopify returned a non-JSON body") from exc

        errors = [str(e.get("message", "")) for e in body.get("errors") or [] if isinstance(e, dict)]
        if errors:
            logger.warning("shopify_graphql_errors", errors=errors)
            raise CatalogMutationFailed("Shopify GraphQL errors", errors=errors)
        return body.get("data") or {}

    def resolve_by_id(self, reference: str, shop: str | None = None) -> OrderSnapshot | None:
        data = self._graphql(NODE_QUERY, {"id": reference}, shop)
        return snapshot_from_node(data.get("node"))

    def resolve_by_name(self, display_name: str, shop: str | None = None) -> OrderSnapshot | None:
        search = {"query": f"name:{display_name}"}

        orders = self._graphql(ORDERS_BY_NAME_QUERY, search, shop)
        edges = (orders.get("orders") or {}).get("edges") or []
        if edges:
            return snapshot_from_node({"__typename": "Order", **edges[0]["node"]})

        drafts = self._graphql(DRAFT_ORDERS_BY_NAME_QUERY, search, shop)
        edges = (drafts.get("draftOrders") or {}).get("edges") or []
        if edges:
            return snapshot_from_node({"__typename": "DraftOrder", **edges[0]["node"]})
        return None

    def _complete_draft(self, reference: str, shop: str | None) -> str | None:
        data = self._graphql(DRAFT_ORDER_COMPLETE, {"id": reference}, shop)
        payload = data.get("draftOrderComplete") or {}
        errors = _user_error_messages(payload)
        if errors:
            raise CatalogMutationFailed("draftOrderComplete userErrors", errors=errors)

        order = ((payload.get("draftOrder") or {}).get("order")) or {}
        logger.info("draft_order_completed", order_ref=reference, final_order_id=order.get("id"))
        return order.get("id")

    def _mark_paid(self, reference: str, shop: str | None) -> str | None:
        data = self._graphql(ORDER_MARK_AS_PAID, {"id": reference}, shop)
        payload = data.get("orderMarkAsPaid") or {}
        errors = _user_error_messages(payload)
        if errors:
            raise CatalogMutationFailed("orderMarkAsPaid userErrors", errors=errors)

        order = payload.get("order") or {}
        logger.info("order_marked_paid", order_ref=reference, status=order.get("displayFinancialStatus"))
        return order.get("id") or reference
