"""Domain models for fs_receipt — pure dataclasses, no SQLAlchemy."""

from dataclasses import dataclass, field
from datetime import datetime

from src.fs_common.datetime_utils import is_expired
from src.fs_common.enums import ReceiptSessionStatus
from src.fs_common.participants import ParticipantRef


@dataclass(frozen=True)
class ReceiptItem:
    """A receipt line. Immutable once created."""

    id: str
    session_id: str
    name: str
    price_cents: int
    position: int


@dataclass
class ReceiptSession:
    id: str
    group_id: str
    created_by: str
    status: ReceiptSessionStatus
    expires_at: datetime
    merchant: str
    receipt_date: datetime | None
    # Stored independently: extraction may be inconsistent, so subtotal need
    # not equal Σ item prices and total need not equal subtotal + tax + tip.
    subtotal_cents: int
    tax_cents: int
    tip_cents: int
    total_cents: int
    participants: list[ParticipantRef] = field(default_factory=list)
    expense_id: str | None = None
    reopened_by: str | None = None
    reopened_at: datetime | None = None
    finalized_by: str | None = None
    created_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        return is_expired(self.expires_at, now)

    def is_controller(self, member_id: str) -> bool:
        """Creator, or whoever re-opened it last, may finalize."""
        return member_id == self.created_by or (
            self.reopened_by is not None and member_id == self.reopened_by
        )


@dataclass(frozen=True)
class Claimant:
    """A claim row joined with the claimant's display data."""

    participant: ParticipantRef
    name: str
    image: str | None = None
    claimed_at: datetime | None = None


@dataclass(frozen=True)
class ExtractedItem:
    name: str
    price_cents: int


@dataclass(frozen=True)
class ExtractedReceipt:
    """Extraction output after normalisation; still possibly inconsistent."""

    merchant: str
    receipt_date: datetime | None
    items: list[ExtractedItem]
    subtotal_cents: int
    tax_cents: int
    tip_cents: int
    total_cents: int


@dataclass(frozen=True)
class ParticipantShare:
    participant: ParticipantRef
    amount_cents: int


@dataclass(frozen=True)
class ReconciliationResult:
    amount_cents: int
    shares: list[ParticipantShare]
    items_discrepancy_cents: int
    final_discrepancy_cents: int
