"""LedgerApplicationService — thin composition layer.

All methods are read-only; no commit/rollback needed.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.enums import ParticipantKind
from src.fs_common.money import cents_to_display
from src.fs_group.application.service import GroupDirectoryService
from src.fs_group.domain.models import Roster
from src.fs_ledger.application.schemas import (
    BalancesResponse,
    BalanceTotals,
    ParticipantBalanceItem,
)
from src.fs_ledger.domain.balances import compute_balances
from src.fs_ledger.domain.models import ParticipantBalance
from src.fs_ledger.domain.repository import LedgerRepositoryProtocol
from src.fs_ledger.infrastructure.persistence import LedgerRepository


class LedgerApplicationService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol | None = None,
        directory: GroupDirectoryService | None = None,
    ) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()
        self._directory = directory or GroupDirectoryService()

    async def load_balances(
        self, db: AsyncSession, group_id: str
    ) -> tuple[Roster, list[ParticipantBalance]]:
        """Roster + domain balances; shared with the settlement optimizer."""
        roster = await self._directory.get_roster(db, group_id)
        expenses = await self._repo.list_paid_expenses(db, group_id)
        shares = await self._repo.list_owed_shares(db, group_id)
        settled = await self._repo.list_settled_payments(db, group_id)
        return roster, compute_balances(roster.refs, expenses, shares, settled)

    async def get_balances(
        self, db: AsyncSession, group_id: str, member_id: str
    ) -> BalancesResponse:
        await self._directory.ensure_member(db, group_id, member_id)
        roster, balances = await self.load_balances(db, group_id)

        items = []
        for bal in balances:
            entry = roster.get(bal.participant)
            assert entry is not None, f"Balance for participant outside roster: {bal.participant}"
            items.append(ParticipantBalanceItem.from_domain(bal, entry))

        total_expenses = sum(b.total_paid_cents for b in balances)
        members = sum(1 for r in roster.refs if r.kind is ParticipantKind.MEMBER)
        placeholders = len(roster.entries) - members
        participants = len(roster.entries)
        return BalancesResponse(
            group_id=group_id,
            balances=items,
            totals=BalanceTotals(
                total_expenses_cents=total_expenses,
                total_expenses_display=cents_to_display(total_expenses),
                total_members=members,
                total_placeholders=placeholders,
                total_participants=participants,
                average_per_participant_cents=(
                    total_expenses // participants if participants else 0
                ),
            ),
        )
