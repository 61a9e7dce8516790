"""Domain models for fs_settlement — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.fs_common.participants import ParticipantRef


@dataclass(frozen=True)
class Transaction:
    """Suggested payment: `sender` pays `receiver` amount_cents."""

    settlement_id: str
    sender: ParticipantRef
    receiver: ParticipantRef
    amount_cents: int


@dataclass
class SettlementRecord:
    """A transaction someone marked as paid.

    `settlement_id` is the suggestion it came from; the same pairing and
    amount can recur later, so it is not unique across records.
    """

    id: str
    settlement_id: str
    group_id: str
    sender: ParticipantRef
    receiver: ParticipantRef
    amount_cents: int
    marked_by: str
    paid_at: datetime
