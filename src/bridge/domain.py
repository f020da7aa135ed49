"""Crypto payment bridge bounded context — order/invoice reconciliation.

Maps storefront orders to reusable crypto-processor invoices, tracks the
amount each invoice was issued for, and settles orders in the storefront
catalog when the processor reports a final payment status.
"""

import structlog
from protean.domain import Domain

bridge = Domain(name="bridge")

logger = structlog.get_logger(__name__)
