"""Domain models for fs_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass

from src.fs_common.participants import ParticipantRef


@dataclass(frozen=True)
class PaidExpense:
    """Who paid how much for one expense (cents)."""

    expense_id: str
    payer: ParticipantRef
    amount_cents: int


@dataclass(frozen=True)
class OwedShare:
    expense_id: str
    participant: ParticipantRef
    amount_cents: int


@dataclass(frozen=True)
class SettledPayment:
    """A settlement transaction someone marked as paid."""

    sender: ParticipantRef
    receiver: ParticipantRef
    amount_cents: int


@dataclass
class ParticipantBalance:
    participant: ParticipantRef
    total_paid_cents: int = 0
    total_owed_cents: int = 0
    settled_sent_cents: int = 0        # paid out to creditors via settlements
    settled_received_cents: int = 0    # received from debtors via settlements

    @property
    def net_balance_cents(self) -> int:
        """Positive = is owed money; negative = owes money."""
        return (
            self.total_paid_cents
            - self.total_owed_cents
            + self.settled_sent_cents
            - self.settled_received_cents
        )
