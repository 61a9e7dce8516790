"""Domain models for fs_expense — pure dataclasses, no SQLAlchemy."""

from dataclasses import dataclass, field
from datetime import datetime

from src.fs_common.participants import ParticipantRef


@dataclass(frozen=True)
class ShareLine:
    participant: ParticipantRef
    amount_cents: int


@dataclass
class ExpenseDraft:
    """Everything needed to write an expense and its full share set."""

    group_id: str
    description: str
    amount_cents: int
    paid_by: ParticipantRef
    spent_at: datetime
    created_by: str
    shares: list[ShareLine]
    receipt_session_id: str | None = None


@dataclass
class Expense:
    id: str
    group_id: str
    description: str
    amount_cents: int
    paid_by: ParticipantRef
    spent_at: datetime
    created_by: str
    receipt_session_id: str | None = None
    shares: list[ShareLine] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
