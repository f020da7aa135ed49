"""Invoice processor factory.

Provides get_processor() / set_processor() to swap implementations:
- FakeProcessor for development and testing (default)
- NowPaymentsProcessor when INVOICE_PROCESSOR=nowpayments
"""

import os

from bridge.processor.port import InvoiceProcessor

_current_processor: InvoiceProcessor | None = None


def get_processor() -> InvoiceProcessor:
    """Return the configured invoice processor (singleton)."""
    global _current_processor
    if _current_processor is None:
        adapter = os.environ.get("INVOICE_PROCESSOR", "fake")
        if adapter == "fake":
            from bridge.processor.fake_adapter import FakeProcessor

            _current_processor = FakeProcessor()
        elif adapter == "nowpayments":
            from bridge.processor.nowpayments_adapter import NowPaymentsProcessor

            _current_processor = NowPaymentsProcessor()
        else:
            raise ValueError(f"Unknown invoice processor: {adapter}")
    return _current_processor


def set_processor(processor: InvoiceProcessor) -> None:
    """Override the active invoice processor (useful for tests)."""
    global _current_processor
    _current_processor = processor


def reset_processor() -> None:
    """Reset to the environment-configured processor."""
    global _current_processor
    _current_processor = None
