"""Unit tests for the raw-SQL repositories using a MagicMock AsyncSession."""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.fs_common.enums import ParticipantKind, ReceiptSessionStatus
from src.fs_common.participants import ParticipantRef
from src.fs_expense.domain.models import ExpenseDraft, ShareLine
from src.fs_expense.infrastructure.persistence import ExpenseRepository
from src.fs_ledger.infrastructure.persistence import LedgerRepository
from src.fs_receipt.domain.models import ExtractedItem, ExtractedReceipt
from src.fs_receipt.infrastructure.persistence import ReceiptRepository
from src.fs_settlement.domain.models import Transaction
from src.fs_settlement.infrastructure.persistence import SettlementRepository

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def _result(one: Any = None, many: list | None = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    return result


def _session_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "s1")
    row.group_id = "g1"
    row.created_by = "alice"
    row.status = kwargs.get("status", "claiming")
    row.expires_at = NOW + timedelta(hours=2)
    row.merchant = "Shop"
    row.receipt_date = None
    row.subtotal_cents = 1000
    row.tax_cents = 100
    row.tip_cents = 0
    row.total_cents = 1100
    row.expense_id = kwargs.get("expense_id")
    row.reopened_by = None
    row.reopened_at = None
    row.finalized_by = None
    row.created_at = NOW
    return row


def _item_row(item_id: str, position: int, price: int) -> MagicMock:
    row = MagicMock()
    row.id = item_id
    row.receipt_session_id = "s1"
    row.name = f"Item {position}"
    row.price_cents = price
    row.position = position
    return row


def _claim_row(item_id: str, pid: str, kind: str, name: str | None) -> MagicMock:
    row = MagicMock()
    row.receipt_item_id = item_id
    row.participant_id = pid
    row.participant_kind = kind
    row.name = name
    row.image = None
    row.claimed_at = NOW
    return row


def _expense_row(expense_id: str = "e1") -> MagicMock:
    row = MagicMock()
    row.id = expense_id
    row.group_id = "g1"
    row.description = "Dinner"
    row.amount_cents = 3000
    row.paid_by_id = "alice"
    row.paid_by_kind = "member"
    row.spent_at = NOW
    row.created_by = "alice"
    row.receipt_session_id = None
    row.created_at = NOW
    row.updated_at = NOW
    return row


def _db(*results: MagicMock) -> MagicMock:
    db = MagicMock()
    db.execute = AsyncMock(side_effect=list(results))
    return db


class TestReceiptRepository:
    async def test_create_session_writes_participants_and_items(self) -> None:
        db = _db(
            _result(_session_row()),
            _result(),
            _result(_item_row("i1", 0, 600)),
            _result(_item_row("i2", 1, 400)),
        )
        receipt = ExtractedReceipt(
            merchant="Shop", receipt_date=None,
            items=[ExtractedItem("A", 600), ExtractedItem("B", 400)],
            subtotal_cents=1000, tax_cents=100, tip_cents=0, total_cents=1100,
        )
        refs = [ParticipantRef.member("alice"), ParticipantRef.placeholder("carol")]

        session, items = await ReceiptRepository().create_session(
            db, "g1", "alice", receipt, refs, NOW
        )

        assert session.status is ReceiptSessionStatus.CLAIMING
        assert session.participants == refs
        assert [i.id for i in items] == ["i1", "i2"]
        participant_params = db.execute.await_args_list[1].args[1]
        assert participant_params[1] == {
            "session_id": "s1", "participant_id": "carol",
            "participant_kind": "placeholder", "position": 1,
        }

    async def test_get_session_missing(self) -> None:
        db = _db(_result(None))
        assert await ReceiptRepository().get_session(db, "g1", "nope") is None
        assert db.execute.await_count == 1

    async def test_get_session_for_update_uses_locking_query(self) -> None:
        participant = MagicMock(participant_id="bob", participant_kind="member")
        db = _db(_result(_session_row(expense_id="e9")), _result(many=[participant]))

        session = await ReceiptRepository().get_session(db, "g1", "s1", for_update=True)

        assert "FOR UPDATE" in str(db.execute.await_args_list[0].args[0])
        assert session.expense_id == "e9"
        assert session.participants == [ParticipantRef.member("bob")]

    async def test_list_claims_groups_by_item(self) -> None:
        db = _db(_result(many=[
            _claim_row("i1", "alice", "member", "Alice"),
            _claim_row("i1", "carol", "placeholder", "Carol"),
            _claim_row("i2", "ghost", "member", None),
        ]))

        claims = await ReceiptRepository().list_claims(db, "s1")

        assert [c.name for c in claims["i1"]] == ["Alice", "Carol"]
        assert claims["i1"][1].participant.kind is ParticipantKind.PLACEHOLDER
        assert claims["i2"][0].name == "Unknown User"

    @pytest.mark.parametrize("returned, expected", [(MagicMock(), True), (None, False)])
    async def test_insert_claim_reports_whether_row_was_written(
        self, returned, expected
    ) -> None:
        db = _db(_result(returned))
        ok = await ReceiptRepository().insert_claim(db, "i1", ParticipantRef.member("alice"))
        assert ok is expected
        sql = str(db.execute.await_args.args[0])
        assert "ON CONFLICT" in sql
        assert db.execute.await_args.args[1]["participant_kind"] == "member"

    async def test_delete_claim_absent(self) -> None:
        db = _db(_result(None))
        assert await ReceiptRepository().delete_claim(
            db, "i1", ParticipantRef.member("alice")
        ) is False


class TestExpenseRepository:
    async def test_insert_writes_all_shares_in_one_call(self) -> None:
        db = _db(_result(_expense_row()), _result())
        draft = ExpenseDraft(
            group_id="g1", description="Dinner", amount_cents=3000,
            paid_by=ParticipantRef.member("alice"), spent_at=NOW, created_by="alice",
            shares=[
                ShareLine(ParticipantRef.member("alice"), 1500),
                ShareLine(ParticipantRef.placeholder("carol"), 1500),
            ],
        )

        expense = await ExpenseRepository().insert_expense(db, draft)

        assert expense.id == "e1"
        assert len(expense.shares) == 2
        share_params = db.execute.await_args_list[1].args[1]
        assert [p["participant_kind"] for p in share_params] == ["member", "placeholder"]
        assert all(p["expense_id"] == "e1" for p in share_params)

    async def test_replace_missing_returns_none(self) -> None:
        db = _db(_result(None))
        draft = ExpenseDraft("g1", "x", 100, ParticipantRef.member("a"), NOW, "a", [])
        assert await ExpenseRepository().replace_expense(db, "e404", draft) is None
        assert db.execute.await_count == 1

    async def test_list_attaches_shares(self) -> None:
        share = MagicMock(
            expense_id="e1", participant_id="bob", participant_kind="member", amount_cents=3000
        )
        db = _db(_result(many=[_expense_row("e1"), _expense_row("e2")]), _result(many=[share]))

        expenses = await ExpenseRepository().list_expenses(db, "g1")

        assert [len(e.shares) for e in expenses] == [1, 0]
        assert expenses[0].shares[0].participant == ParticipantRef.member("bob")


class TestLedgerAndSettlementRepositories:
    async def test_ledger_projections(self) -> None:
        paid = MagicMock(id="e1", paid_by_id="carol", paid_by_kind="placeholder", amount_cents=900)
        db = _db(_result(many=[paid]))

        rows = await LedgerRepository().list_paid_expenses(db, "g1")

        assert rows[0].payer == ParticipantRef.placeholder("carol")
        assert rows[0].amount_cents == 900

    async def test_insert_record(self) -> None:
        row = MagicMock(
            id="r1", settlement_id="abc", group_id="g1", from_id="bob", from_kind="member",
            to_id="alice", to_kind="member", amount_cents=500, marked_by="bob", paid_at=NOW,
        )
        db = _db(_result(row))
        txn = Transaction(
            "abc", ParticipantRef.member("bob"), ParticipantRef.member("alice"), 500
        )

        record = await SettlementRepository().insert_record(db, "g1", txn, "bob")

        assert record.settlement_id == "abc"
        assert record.sender == ParticipantRef.member("bob")
        assert db.execute.await_args.args[1]["to_id"] == "alice"
