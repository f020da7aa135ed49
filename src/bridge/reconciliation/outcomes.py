"""Terminal outcomes of the reconciliation handlers.

Not-found, already-settled, nothing-owed and rejected notifications are
ordinary results, not exceptions. Callers render a different response
for each.
"""

from dataclasses import dataclass
from enum import Enum


class ResolutionOutcome(Enum):
    REUSED = "Reused"
    ISSUED = "Issued"
    SETTLED = "Settled"
    NOTHING_OWED = "NothingOwed"
    NOT_FOUND = "NotFound"
    EMAIL_MISMATCH = "EmailMismatch"


class NotificationOutcome(Enum):
    REJECTED_SIGNATURE = "RejectedSignature"
    MALFORMED = "Malformed"
    IGNORED = "Ignored"
    IGNORED_UNMAPPED = "IgnoredUnmapped"
    UNDERPAID = "Underpaid"
    CONFLICT = "Conflict"
    COMPLETED = "Completed"
    ALREADY_COMPLETED = "AlreadyCompleted"
    COMPLETE_FAILED = "CompleteFailed"


@dataclass(frozen=True)
class InvoiceResolution:
    outcome: ResolutionOutcome
    order_ref: str | None = None
    order_name: str | None = None
    invoice_url: str | None = None
    amount: float | None = None
    currency: str | None = None

    @property
    def has_invoice(self) -> bool:
        return self.outcome in (ResolutionOutcome.REUSED, ResolutionOutcome.ISSUED)


@dataclass(frozen=True)
class NotificationResult:
    outcome: NotificationOutcome
    order_ref: str | None = None
    final_order_id: str | None = None
    detail: str | None = None
