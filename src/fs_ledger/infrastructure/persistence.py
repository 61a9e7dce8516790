"""LedgerRepository — read-only projections of a group's expense history.

Ordering is by primary key so repeated reads fold identically.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.participants import ParticipantRef
from src.fs_ledger.domain.models import OwedShare, PaidExpense, SettledPayment

_LIST_PAID_SQL = text("""
    SELECT id, paid_by_id, paid_by_kind, amount_cents
    FROM expenses
    WHERE group_id = :group_id
    ORDER BY id
""")

_LIST_OWED_SQL = text("""
    SELECT s.expense_id, s.participant_id, s.participant_kind, s.amount_cents
    FROM expense_shares s
    JOIN expenses e ON e.id = s.expense_id
    WHERE e.group_id = :group_id
    ORDER BY s.expense_id, s.id
""")

_LIST_SETTLED_SQL = text("""
    SELECT from_id, from_kind, to_id, to_kind, amount_cents
    FROM settlement_records
    WHERE group_id = :group_id
    ORDER BY paid_at, id
""")


class LedgerRepository:
    async def list_paid_expenses(self, db: AsyncSession, group_id: str) -> list[PaidExpense]:
        rows = (await db.execute(_LIST_PAID_SQL, {"group_id": group_id})).fetchall()
        return [
            PaidExpense(
                expense_id=str(row.id),
                payer=ParticipantRef.from_row(row.paid_by_id, row.paid_by_kind),
                amount_cents=row.amount_cents,
            )
            for row in rows
        ]

    async def list_owed_shares(self, db: AsyncSession, group_id: str) -> list[OwedShare]:
        rows = (await db.execute(_LIST_OWED_SQL, {"group_id": group_id})).fetchall()
        return [
            OwedShare(
                expense_id=str(row.expense_id),
                participant=ParticipantRef.from_row(row.participant_id, row.participant_kind),
                amount_cents=row.amount_cents,
            )
            for row in rows
        ]

    async def list_settled_payments(
        self, db: AsyncSession, group_id: str
    ) -> list[SettledPayment]:
        rows = (await db.execute(_LIST_SETTLED_SQL, {"group_id": group_id})).fetchall()
        return [
            SettledPayment(
                sender=ParticipantRef.from_row(row.from_id, row.from_kind),
                receiver=ParticipantRef.from_row(row.to_id, row.to_kind),
                amount_cents=row.amount_cents,
            )
            for row in rows
        ]
