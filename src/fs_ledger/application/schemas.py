"""Pydantic schemas for fs_ledger API responses."""

from pydantic import BaseModel

from src.fs_common.money import cents_to_display
from src.fs_group.domain.models import RosterEntry
from src.fs_ledger.domain.models import ParticipantBalance


class ParticipantBalanceItem(BaseModel):
    participant_id: str
    participant_kind: str
    name: str
    email: str | None
    image: str | None
    payment_info: str | None
    total_paid_cents: int
    total_owed_cents: int
    settled_sent_cents: int
    settled_received_cents: int
    net_balance_cents: int
    net_balance_display: str

    @classmethod
    def from_domain(cls, bal: ParticipantBalance, entry: RosterEntry) -> "ParticipantBalanceItem":
        return cls(
            participant_id=bal.participant.id,
            participant_kind=bal.participant.kind.value,
            name=entry.name,
            email=entry.email,
            image=entry.image,
            payment_info=entry.payment_info,
            total_paid_cents=bal.total_paid_cents,
            total_owed_cents=bal.total_owed_cents,
            settled_sent_cents=bal.settled_sent_cents,
            settled_received_cents=bal.settled_received_cents,
            net_balance_cents=bal.net_balance_cents,
            net_balance_display=cents_to_display(bal.net_balance_cents),
        )


class BalanceTotals(BaseModel):
    total_expenses_cents: int
    total_expenses_display: str
    total_members: int
    total_placeholders: int
    total_participants: int
    average_per_participant_cents: int


class BalancesResponse(BaseModel):
    group_id: str
    balances: list[ParticipantBalanceItem]
    totals: BalanceTotals
