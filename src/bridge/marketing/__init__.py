"""Marketing platform factory.

Provides get_marketing() / set_marketing():
- FakeMarketing for development and testing (default)
- KlaviyoMarketing when MARKETING_ADAPTER=klaviyo
"""

import os

from bridge.marketing.port import MarketingPlatform

_current_marketing: MarketingPlatform | None = None


def get_marketing() -> MarketingPlatform:
    global _current_marketing
    if _current_marketing is None:
        adapter = os.environ.get("MARKETING_ADAPTER", "fake")
        if adapter == "fake":
            from bridge.marketing.fake_adapter import FakeMarketing

            _current_marketing = FakeMarketing()
        elif adapter == "klaviyo":
            from bridge.marketing.klaviyo_adapter import KlaviyoMarketing

            _current_marketing = KlaviyoMarketing()
        else:
            raise ValueError(f"Unknown marketing adapter: {adapter}")
    return _current_marketing


def set_marketing(marketing: MarketingPlatform) -> None:
    """Override the active marketing platform (useful for tests)."""
    global _current_marketing
    _current_marketing = marketing


def reset_marketing() -> None:
    global _current_marketing
    _current_marketing = None
