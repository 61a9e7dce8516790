"""LedgerRepository Protocol: read-only rows the balance fold consumes."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_ledger.domain.models import OwedShare, PaidExpense, SettledPayment


class LedgerRepositoryProtocol(Protocol):
    async def list_paid_expenses(self, db: AsyncSession, group_id: str) -> list[PaidExpense]: ...

    async def list_owed_shares(self, db: AsyncSession, group_id: str) -> list[OwedShare]: ...

    async def list_settled_payments(
        self, db: AsyncSession, group_id: str
    ) -> list[SettledPayment]: ...
