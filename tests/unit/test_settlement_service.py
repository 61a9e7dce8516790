"""Unit tests for SettlementApplicationService using mock repositories."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.fs_common.errors import NotGroupMemberError, SettlementNotFoundError
from src.fs_ledger.domain.models import ParticipantBalance
from src.fs_settlement.application.service import SettlementApplicationService
from src.fs_settlement.domain.models import SettlementRecord, Transaction
from src.fs_settlement.domain.optimizer import settlement_id_for


def _record(txn: Transaction, record_id: str = "r1") -> SettlementRecord:
    return SettlementRecord(
        id=record_id,
        settlement_id=txn.settlement_id,
        group_id="g1",
        sender=txn.sender,
        receiver=txn.receiver,
        amount_cents=txn.amount_cents,
        marked_by="bob",
        paid_at=datetime(2026, 4, 1, tzinfo=UTC),
    )


@pytest.fixture
def balances(alice, bob, carol) -> list[ParticipantBalance]:
    return [
        ParticipantBalance(alice, total_paid_cents=3000, total_owed_cents=1000),
        ParticipantBalance(bob, total_owed_cents=1000),
        ParticipantBalance(carol, total_owed_cents=1000),
    ]


@pytest.fixture
def ledger(roster, balances) -> AsyncMock:
    mock = AsyncMock()
    mock.load_balances.return_value = (roster, balances)
    return mock


@pytest.fixture
def repo() -> AsyncMock:
    mock = AsyncMock()
    mock.insert_record.side_effect = lambda db, group_id, txn, marked_by: _record(txn)
    return mock


@pytest.fixture
def db() -> MagicMock:
    mock = MagicMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    return mock


@pytest.fixture
def svc(repo, ledger) -> SettlementApplicationService:
    return SettlementApplicationService(repo=repo, ledger=ledger, directory=AsyncMock())


class TestListSettlements:
    async def test_suggestions_with_party_details(self, svc, db) -> None:
        result = await svc.list_settlements(db, "g1", "alice")

        assert len(result.settlements) == 2
        assert {s.sender.id for s in result.settlements} == {"bob", "carol"}
        assert all(s.receiver.payment_info == "@alice" for s in result.settlements)
        assert all(s.amount_cents == 1000 for s in result.settlements)
        carol_row = next(s for s in result.settlements if s.sender.id == "carol")
        assert carol_row.sender.name == "Carol (placeholder)"

    async def test_non_member(self, db, repo, ledger) -> None:
        directory = AsyncMock()
        directory.ensure_member.side_effect = NotGroupMemberError("g1")
        svc = SettlementApplicationService(repo=repo, ledger=ledger, directory=directory)
        with pytest.raises(NotGroupMemberError):
            await svc.list_settlements(db, "g1", "mallory")
        ledger.load_balances.assert_not_awaited()


class TestMarkPaid:
    async def test_records_current_suggestion(self, svc, repo, db, bob, alice) -> None:
        sid = settlement_id_for("g1", bob, alice, 1000)

        result = await svc.mark_paid(db, "g1", sid, "bob")

        repo.lock_group.assert_awaited_once_with(db, "g1")
        txn = repo.insert_record.await_args.args[2]
        assert (txn.sender, txn.receiver, txn.amount_cents) == (bob, alice, 1000)
        assert result.settlement_id == sid
        assert result.record_id == "r1"
        db.commit.assert_awaited_once()

    async def test_stale_id_rejected(self, svc, repo, db, bob, alice) -> None:
        stale = settlement_id_for("g1", bob, alice, 999)
        with pytest.raises(SettlementNotFoundError):
            await svc.mark_paid(db, "g1", stale, "bob")
        repo.insert_record.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestMarkUnpaid:
    async def test_removes_latest_record(self, svc, repo, db) -> None:
        repo.delete_latest_record.return_value = True
        result = await svc.mark_unpaid(db, "g1", "abc", "alice")
        assert result.removed is True
        repo.delete_latest_record.assert_awaited_once_with(db, "g1", "abc")

    async def test_nothing_to_remove(self, svc, repo, db) -> None:
        repo.delete_latest_record.return_value = False
        with pytest.raises(SettlementNotFoundError):
            await svc.mark_unpaid(db, "g1", "abc", "alice")
        db.rollback.assert_awaited_once()
