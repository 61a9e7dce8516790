"""Unit tests for LedgerApplicationService using mock repositories."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.fs_ledger.application.service import LedgerApplicationService
from src.fs_ledger.domain.models import OwedShare, PaidExpense, SettledPayment


@pytest.fixture
def svc(roster, alice, bob, carol) -> LedgerApplicationService:
    repo = AsyncMock()
    repo.list_paid_expenses.return_value = [PaidExpense("e1", alice, 3000)]
    repo.list_owed_shares.return_value = [
        OwedShare("e1", alice, 1000),
        OwedShare("e1", bob, 1000),
        OwedShare("e1", carol, 1000),
    ]
    repo.list_settled_payments.return_value = [SettledPayment(bob, alice, 1000)]
    directory = AsyncMock()
    directory.get_roster.return_value = roster
    return LedgerApplicationService(repo=repo, directory=directory)


async def test_balances_include_settlements(svc) -> None:
    result = await svc.get_balances(MagicMock(), "g1", "alice")

    nets = {b.participant_id: b.net_balance_cents for b in result.balances}
    assert nets == {"alice": 1000, "bob": 0, "carol": -1000}
    assert sum(nets.values()) == 0


async def test_totals(svc) -> None:
    result = await svc.get_balances(MagicMock(), "g1", "alice")

    assert result.totals.total_expenses_cents == 3000
    assert result.totals.total_members == 2
    assert result.totals.total_placeholders == 1
    assert result.totals.average_per_participant_cents == 1000


async def test_roster_details_carried(svc) -> None:
    result = await svc.get_balances(MagicMock(), "g1", "bob")

    alice_row = result.balances[0]
    assert alice_row.name == "Alice"
    assert alice_row.payment_info == "@alice"
    assert alice_row.net_balance_display == "$10.00"
