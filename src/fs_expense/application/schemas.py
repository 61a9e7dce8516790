"""Pydantic schemas for fs_expense API requests/responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, field_validator

from src.fs_common.money import cents_to_display
from src.fs_common.participants import ParticipantRef, describe_participant
from src.fs_expense.domain.models import Expense, ShareLine


class ShareIn(BaseModel):
    participant_id: str
    participant_kind: Literal["member", "placeholder"] = "member"
    share_cents: int

    def to_domain(self) -> ShareLine:
        return ShareLine(
            participant=ParticipantRef.from_row(self.participant_id, self.participant_kind),
            amount_cents=self.share_cents,
        )


class ExpenseRequest(BaseModel):
    """Body of both create (POST) and full replace (PUT)."""

    description: str
    amount_cents: int
    paid_by_id: str
    paid_by_kind: Literal["member", "placeholder"] = "member"
    spent_at: datetime | None = None
    participants: list[ShareIn]

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description must not be blank")
        return v

    @property
    def payer(self) -> ParticipantRef:
        return ParticipantRef.from_row(self.paid_by_id, self.paid_by_kind)


class ShareOut(BaseModel):
    participant_id: str
    participant_kind: str
    name: str
    amount_cents: int
    amount_display: str


class ExpenseOut(BaseModel):
    id: str
    group_id: str
    description: str
    amount_cents: int
    amount_display: str
    paid_by_id: str
    paid_by_kind: str
    paid_by_name: str
    spent_at: datetime
    receipt_session_id: str | None = None
    shares: list[ShareOut]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(
        cls, expense: Expense, names: dict[ParticipantRef, str]
    ) -> "ExpenseOut":
        return cls(
            id=expense.id,
            group_id=expense.group_id,
            description=expense.description,
            amount_cents=expense.amount_cents,
            amount_display=cents_to_display(expense.amount_cents),
            paid_by_id=expense.paid_by.id,
            paid_by_kind=expense.paid_by.kind.value,
            paid_by_name=describe_participant(expense.paid_by, names),
            spent_at=expense.spent_at,
            receipt_session_id=expense.receipt_session_id,
            shares=[
                ShareOut(
                    participant_id=s.participant.id,
                    participant_kind=s.participant.kind.value,
                    name=describe_participant(s.participant, names),
                    amount_cents=s.amount_cents,
                    amount_display=cents_to_display(s.amount_cents),
                )
                for s in expense.shares
            ],
            created_at=expense.created_at,
            updated_at=expense.updated_at,
        )


class ExpenseListResponse(BaseModel):
    items: list[ExpenseOut]


class DeleteExpenseResponse(BaseModel):
    expense_id: str
    deleted: bool
