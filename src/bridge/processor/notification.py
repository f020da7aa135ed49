"""Inbound payment notification body, parsed at the boundary.

Defaulting rules:
    order_id        required, non-empty, at most ORDER_REF_MAX_LENGTH characters
    payment_status  ``payment_status``, else legacy ``paymentstatus``; lowercased, "" if absent
    price_amount    ``price_amount`` only (``pay_amount`` is in the pay currency); None if absent or not numeric
    price_currency  ``price_currency`` as sent; None if absent
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bridge.catalog.snapshot import ORDER_REF_MAX_LENGTH


class PaymentNotificationPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    order_id: str = Field(min_length=1, max_length=ORDER_REF_MAX_LENGTH)
    payment_status: str = ""
    price_amount: float | None = None
    price_currency: str | None = None

    @model_validator(mode="before")
    @classmethod
    def apply_fallbacks(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("Notification body must be a JSON object")
        data = dict(data)
        if not data.get("payment_status") and data.get("paymentstatus"):
            data["payment_status"] = data["paymentstatus"]
        if data.get("order_id") is not None:
            data["order_id"] = str(data["order_id"]).strip()
        return data

    @field_validator("payment_status", mode="before")
    @classmethod
    def normalise_status(cls, value: Any) -> str:
        return str(value or "").strip().lower()

    @field_validator("price_amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> float | None:
        if value is None or value == "":
            return None
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return None
        return amount if math.isfinite(amount) else None

    @field_validator("price_currency", mode="before")
    @classmethod
    def coerce_currency(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)
