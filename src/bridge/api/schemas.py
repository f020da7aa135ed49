"""Pydantic request/response schemas for the bridge HTTP surface.

External contracts use the storefront's camelCase names; internal
commands keep snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field


class InvoiceUrlRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [{"orderId": "gid://shopify/Order/1001", "shop": "example.myshopify.com"}],
        },
    )

    order_id: str = Field(alias="orderId", min_length=1)
    shop: str | None = None


class InvoiceUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    invoice_url: str | None = Field(default=None, alias="invoiceUrl")
    amount: float = 0.0
    currency: str = "USD"


class OrdersCreateWebhook(BaseModel):
    model_config = ConfigDict(extra="allow")

    admin_graphql_api_id: str | None = None
