"""Pydantic schemas for fs_receipt API requests/responses."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from src.fs_common.enums import ClaimAction, FinalizeOutcome
from src.fs_common.money import cents_to_display
from src.fs_common.participants import ParticipantRef, describe_participant
from src.fs_realtime.application.schemas import ClaimantSummary
from src.fs_receipt.domain.models import Claimant, ReceiptItem, ReceiptSession
from src.fs_receipt.domain.reconciliation import share_per_claimant


class ParticipantIn(BaseModel):
    participant_id: str
    participant_kind: Literal["member", "placeholder"] = "member"

    def to_ref(self) -> ParticipantRef:
        return ParticipantRef.from_row(self.participant_id, self.participant_kind)


class CreateReceiptSessionRequest(BaseModel):
    # Raw extraction output: merchant, date, items[{name, price}], subtotal,
    # tax, tip, total. Validated by normalize_extraction, not by pydantic.
    extracted: dict[str, Any]
    participants: list[ParticipantIn] = Field(min_length=1)


class ClaimRequest(BaseModel):
    item_id: str
    action: ClaimAction
    # Omitted → the caller claims for themselves
    participant_id: str | None = None
    participant_kind: Literal["member", "placeholder"] = "member"

    def participant_or(self, default: ParticipantRef) -> ParticipantRef:
        if self.participant_id is None:
            return default
        return ParticipantRef.from_row(self.participant_id, self.participant_kind)


def claimant_summaries(claimants: list[Claimant]) -> list[ClaimantSummary]:
    return [
        ClaimantSummary(
            participant_id=c.participant.id,
            participant_kind=c.participant.kind.value,
            name=c.name,
            image=c.image,
        )
        for c in claimants
    ]


class ParticipantOut(BaseModel):
    participant_id: str
    participant_kind: str
    name: str


class ReceiptItemOut(BaseModel):
    id: str
    name: str
    price_cents: int
    price_display: str
    position: int
    total_claims: int
    share_per_person_cents: int
    claimants: list[ClaimantSummary]

    @classmethod
    def from_domain(cls, item: ReceiptItem, claimants: list[Claimant]) -> "ReceiptItemOut":
        return cls(
            id=item.id,
            name=item.name,
            price_cents=item.price_cents,
            price_display=cents_to_display(item.price_cents),
            position=item.position,
            total_claims=len(claimants),
            share_per_person_cents=share_per_claimant(item.price_cents, len(claimants)),
            claimants=claimant_summaries(claimants),
        )


class ReceiptSessionOut(BaseModel):
    id: str
    group_id: str
    status: str
    merchant: str
    receipt_date: datetime | None
    subtotal_cents: int
    tax_cents: int
    tip_cents: int
    total_cents: int
    total_display: str
    items_total_cents: int
    expires_at: datetime
    is_expired: bool
    created_by: str
    reopened_by: str | None
    expense_id: str | None
    can_finalize: bool
    participants: list[ParticipantOut]
    items: list[ReceiptItemOut]

    @classmethod
    def build(
        cls,
        session: ReceiptSession,
        items: list[ReceiptItem],
        claims: dict[str, list[Claimant]],
        names: dict[ParticipantRef, str],
        viewer_id: str,
    ) -> "ReceiptSessionOut":
        return cls(
            id=session.id,
            group_id=session.group_id,
            status=session.status.value,
            merchant=session.merchant,
            receipt_date=session.receipt_date,
            subtotal_cents=session.subtotal_cents,
            tax_cents=session.tax_cents,
            tip_cents=session.tip_cents,
            total_cents=session.total_cents,
            total_display=cents_to_display(session.total_cents),
            items_total_cents=sum(i.price_cents for i in items),
            expires_at=session.expires_at,
            is_expired=session.is_expired(),
            created_by=session.created_by,
            reopened_by=session.reopened_by,
            expense_id=session.expense_id,
            can_finalize=session.is_controller(viewer_id),
            participants=[
                ParticipantOut(
                    participant_id=ref.id,
                    participant_kind=ref.kind.value,
                    name=describe_participant(ref, names),
                )
                for ref in session.participants
            ],
            items=[ReceiptItemOut.from_domain(i, claims.get(i.id, [])) for i in items],
        )


class ClaimResponse(BaseModel):
    action: ClaimAction
    item_id: str
    total_claims: int
    share_per_person_cents: int
    claimants: list[ClaimantSummary]


class FinalShareOut(BaseModel):
    participant_id: str
    participant_kind: str
    name: str
    amount_cents: int
    amount_display: str


class FinalizeResponse(BaseModel):
    session_id: str
    expense_id: str
    outcome: FinalizeOutcome
    description: str
    amount_cents: int
    shares: list[FinalShareOut]


class SessionActionResponse(BaseModel):
    session_id: str
    status: str
    message: str


class ActiveSessionOut(BaseModel):
    id: str
    merchant: str
    receipt_date: datetime | None
    total_cents: int
    total_display: str
    status: str
    expires_at: datetime
    created_by: str
    creator_name: str
    created_at: datetime | None

    @classmethod
    def from_domain(
        cls, session: ReceiptSession, names: dict[ParticipantRef, str]
    ) -> "ActiveSessionOut":
        return cls(
            id=session.id,
            merchant=session.merchant,
            receipt_date=session.receipt_date,
            total_cents=session.total_cents,
            total_display=cents_to_display(session.total_cents),
            status=session.status.value,
            expires_at=session.expires_at,
            created_by=session.created_by,
            creator_name=describe_participant(ParticipantRef.member(session.created_by), names),
            created_at=session.created_at,
        )


class ActiveSessionsResponse(BaseModel):
    items: list[ActiveSessionOut]
