"""Runtime settings for the bridge — read from environment variables.

Settings are loaded once per process. Tests swap them with set_settings()
and restore the environment-backed values with reset_settings().
"""

import os
from dataclasses import dataclass, field
from urllib.parse import quote

DEFAULT_REQUIRED_STATUS = "finished"


def _parse_statuses(raw: str | None) -> frozenset[str]:
    """Split a comma-separated status list into a lowercase set."""
    statuses = {s.strip().lower() for s in (raw or DEFAULT_REQUIRED_STATUS).split(",")}
    statuses.discard("")
    return frozenset(statuses) or frozenset({DEFAULT_REQUIRED_STATUS})


def _flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    app_url: str = "http://localhost:8080"
    shop: str = ""
    shopify_access_token: str = ""
    shopify_api_secret: str = ""
    shopify_api_version: str = "2024-10"
    nowpayments_api_key: str = ""
    nowpayments_ipn_secret: str = ""
    nowpayments_base_url: str = "https://api.nowpayments.io/v1"
    required_statuses: frozenset[str] = field(default_factory=lambda: frozenset({DEFAULT_REQUIRED_STATUS}))
    klaviyo_public_token: str = ""
    klaviyo_event_metric: str = "Crypto Invoice Created"
    purge_mapping_on_settle: bool = False

    @property
    def store_url(self) -> str:
        """Public storefront URL, falling back to the bridge itself."""
        return f"https://{self.shop}" if self.shop else self.app_url

    def success_url(self, order_ref: str) -> str:
        return f"{self.app_url}/payment-success?order={quote(order_ref, safe='')}"

    def cancel_url(self, order_ref: str) -> str:
        return f"{self.app_url}/payment-cancel?order={quote(order_ref, safe='')}"

    @property
    def ipn_callback_url(self) -> str:
        return f"{self.app_url}/ipn/nowpayments"

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        return cls(
            app_url=env.get("APP_URL", "http://localhost:8080").rstrip("/"),
            shop=env.get("SHOP", "").strip().lower(),
            shopify_access_token=env.get("SHOPIFY_ACCESS_TOKEN", ""),
            shopify_api_secret=env.get("SHOPIFY_API_SECRET", ""),
            shopify_api_version=env.get("SHOPIFY_API_VERSION", "2024-10"),
            # Keys pasted into secret managers often carry a trailing newline
            nowpayments_api_key=env.get("NOWPAYMENTS_API_KEY", "").strip(),
            nowpayments_ipn_secret=env.get("NOWPAYMENTS_IPN_SECRET", ""),
            nowpayments_base_url=env.get("NOWPAYMENTS_BASE_URL", "https://api.nowpayments.io/v1").rstrip("/"),
            required_statuses=_parse_statuses(env.get("NOWPAYMENTS_REQUIRED_STATUS")),
            klaviyo_public_token=env.get("KLAVIYO_PUBLIC_TOKEN", ""),
            klaviyo_event_metric=env.get("KLAVIYO_EVENT_METRIC") or "Crypto Invoice Created",
            purge_mapping_on_settle=_flag(env.get("PURGE_MAPPING_ON_SETTLE")),
        )


_current_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings, loading them from the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = Settings.from_env()
    return _current_settings


def set_settings(settings: Settings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _current_settings
    _current_settings = None
