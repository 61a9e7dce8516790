"""Pydantic schemas for fs_settlement API responses."""

from pydantic import BaseModel

from src.fs_common.money import cents_to_display
from src.fs_common.participants import ParticipantRef, describe_participant
from src.fs_group.domain.models import Roster
from src.fs_settlement.domain.models import SettlementRecord, Transaction


class PartyOut(BaseModel):
    id: str
    kind: str
    name: str
    email: str | None = None
    image: str | None = None
    payment_info: str | None = None

    @classmethod
    def from_ref(cls, ref: ParticipantRef, roster: Roster) -> "PartyOut":
        entry = roster.get(ref)
        return cls(
            id=ref.id,
            kind=ref.kind.value,
            name=describe_participant(ref, roster.names),
            email=entry.email if entry else None,
            image=entry.image if entry else None,
            payment_info=entry.payment_info if entry else None,
        )


class SettlementTransactionOut(BaseModel):
    settlement_id: str
    sender: PartyOut
    receiver: PartyOut
    amount_cents: int
    amount_display: str

    @classmethod
    def from_domain(cls, txn: Transaction, roster: Roster) -> "SettlementTransactionOut":
        return cls(
            settlement_id=txn.settlement_id,
            sender=PartyOut.from_ref(txn.sender, roster),
            receiver=PartyOut.from_ref(txn.receiver, roster),
            amount_cents=txn.amount_cents,
            amount_display=cents_to_display(txn.amount_cents),
        )


class SettlementsResponse(BaseModel):
    group_id: str
    settlements: list[SettlementTransactionOut]


class MarkPaidResponse(BaseModel):
    record_id: str
    settlement_id: str
    amount_cents: int
    paid_at: str

    @classmethod
    def from_record(cls, record: SettlementRecord) -> "MarkPaidResponse":
        return cls(
            record_id=record.id,
            settlement_id=record.settlement_id,
            amount_cents=record.amount_cents,
            paid_at=record.paid_at.isoformat(),
        )


class MarkUnpaidResponse(BaseModel):
    settlement_id: str
    removed: bool
