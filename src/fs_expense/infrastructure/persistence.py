"""ExpenseRepository — expenses + their share sets, raw text() SQL.

Shares are never patched in place: every write deletes and re-inserts the
full set. Transaction ownership stays with the application service.
"""

from collections import defaultdict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.errors import InternalError
from src.fs_common.participants import ParticipantRef
from src.fs_expense.domain.models import Expense, ExpenseDraft, ShareLine

_EXPENSE_COLUMNS = """
    id, group_id, description, amount_cents, paid_by_id, paid_by_kind,
    spent_at, created_by, receipt_session_id, created_at, updated_at
"""

_INSERT_EXPENSE_SQL = text(f"""
    INSERT INTO expenses
        (group_id, description, amount_cents, paid_by_id, paid_by_kind,
         spent_at, created_by, receipt_session_id)
    VALUES
        (:group_id, :description, :amount_cents, :paid_by_id, :paid_by_kind,
         :spent_at, :created_by, :receipt_session_id)
    RETURNING {_EXPENSE_COLUMNS}
""")

_UPDATE_EXPENSE_SQL = text(f"""
    UPDATE expenses
    SET description = :description,
        amount_cents = :amount_cents,
        paid_by_id = :paid_by_id,
        paid_by_kind = :paid_by_kind,
        spent_at = :spent_at,
        updated_at = NOW()
    WHERE id = :expense_id AND group_id = :group_id
    RETURNING {_EXPENSE_COLUMNS}
""")

_DELETE_SHARES_SQL = text("""
    DELETE FROM expense_shares WHERE expense_id = :expense_id
""")

_INSERT_SHARE_SQL = text("""
    INSERT INTO expense_shares (expense_id, participant_id, participant_kind, amount_cents)
    VALUES (:expense_id, :participant_id, :participant_kind, :amount_cents)
""")

# expense_shares rows go with it (ON DELETE CASCADE)
_DELETE_EXPENSE_SQL = text("""
    DELETE FROM expenses
    WHERE id = :expense_id AND group_id = :group_id
    RETURNING id
""")

_GET_EXPENSE_SQL = text(f"""
    SELECT {_EXPENSE_COLUMNS}
    FROM expenses
    WHERE id = :expense_id AND group_id = :group_id
""")

_GET_SHARES_SQL = text("""
    SELECT expense_id, participant_id, participant_kind, amount_cents
    FROM expense_shares
    WHERE expense_id = :expense_id
    ORDER BY id
""")

_LIST_EXPENSES_SQL = text(f"""
    SELECT {_EXPENSE_COLUMNS}
    FROM expenses
    WHERE group_id = :group_id
    ORDER BY spent_at DESC, created_at DESC, id
""")

_LIST_GROUP_SHARES_SQL = text("""
    SELECT s.expense_id, s.participant_id, s.participant_kind, s.amount_cents
    FROM expense_shares s
    JOIN expenses e ON e.id = s.expense_id
    WHERE e.group_id = :group_id
    ORDER BY s.expense_id, s.id
""")


def _row_to_share(row: object) -> ShareLine:
    return ShareLine(
        participant=ParticipantRef.from_row(
            row.participant_id, row.participant_kind  # type: ignore[attr-defined]
        ),
        amount_cents=row.amount_cents,  # type: ignore[attr-defined]
    )


def _row_to_expense(row: object, shares: list[ShareLine] | None = None) -> Expense:
    return Expense(
        id=str(row.id),  # type: ignore[attr-defined]
        group_id=str(row.group_id),  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        amount_cents=row.amount_cents,  # type: ignore[attr-defined]
        paid_by=ParticipantRef.from_row(row.paid_by_id, row.paid_by_kind),  # type: ignore[attr-defined]
        spent_at=row.spent_at,  # type: ignore[attr-defined]
        created_by=str(row.created_by),  # type: ignore[attr-defined]
        receipt_session_id=(
            str(row.receipt_session_id) if row.receipt_session_id else None  # type: ignore[attr-defined]
        ),
        shares=shares or [],
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _draft_params(draft: ExpenseDraft) -> dict:
    return {
        "group_id": draft.group_id,
        "description": draft.description,
        "amount_cents": draft.amount_cents,
        "paid_by_id": draft.paid_by.id,
        "paid_by_kind": draft.paid_by.kind.value,
        "spent_at": draft.spent_at,
    }


class ExpenseRepository:
    async def insert_expense(self, db: AsyncSession, draft: ExpenseDraft) -> Expense:
        params = _draft_params(draft)
        params["created_by"] = draft.created_by
        params["receipt_session_id"] = draft.receipt_session_id
        row = (await db.execute(_INSERT_EXPENSE_SQL, params)).fetchone()
        if row is None:
            raise InternalError("Expense insert returned no rows")
        expense_id = str(row.id)
        await self._write_shares(db, expense_id, draft.shares)
        return _row_to_expense(row, list(draft.shares))

    async def replace_expense(
        self, db: AsyncSession, expense_id: str, draft: ExpenseDraft
    ) -> Expense | None:
        """Overwrite amount/payer/description/date and recreate every share.

        Returns None when the expense does not exist in the draft's group.
        """
        params = _draft_params(draft)
        params["expense_id"] = expense_id
        row = (await db.execute(_UPDATE_EXPENSE_SQL, params)).fetchone()
        if row is None:
            return None
        await db.execute(_DELETE_SHARES_SQL, {"expense_id": expense_id})
        await self._write_shares(db, expense_id, draft.shares)
        return _row_to_expense(row, list(draft.shares))

    async def delete_expense(self, db: AsyncSession, group_id: str, expense_id: str) -> bool:
        result = await db.execute(
            _DELETE_EXPENSE_SQL, {"group_id": group_id, "expense_id": expense_id}
        )
        return result.fetchone() is not None

    async def get_expense(
        self, db: AsyncSession, group_id: str, expense_id: str
    ) -> Expense | None:
        row = (
            await db.execute(
                _GET_EXPENSE_SQL, {"group_id": group_id, "expense_id": expense_id}
            )
        ).fetchone()
        if row is None:
            return None
        share_rows = (
            await db.execute(_GET_SHARES_SQL, {"expense_id": expense_id})
        ).fetchall()
        return _row_to_expense(row, [_row_to_share(r) for r in share_rows])

    async def list_expenses(self, db: AsyncSession, group_id: str) -> list[Expense]:
        rows = (await db.execute(_LIST_EXPENSES_SQL, {"group_id": group_id})).fetchall()
        share_rows = (
            await db.execute(_LIST_GROUP_SHARES_SQL, {"group_id": group_id})
        ).fetchall()
        by_expense: dict[str, list[ShareLine]] = defaultdict(list)
        for r in share_rows:
            by_expense[str(r.expense_id)].append(_row_to_share(r))
        return [_row_to_expense(row, by_expense.get(str(row.id))) for row in rows]

    async def _write_shares(
        self, db: AsyncSession, expense_id: str, shares: list[ShareLine]
    ) -> None:
        if not shares:
            return
        await db.execute(
            _INSERT_SHARE_SQL,
            [
                {
                    "expense_id": expense_id,
                    "participant_id": line.participant.id,
                    "participant_kind": line.participant.kind.value,
                    "amount_cents": line.amount_cents,
                }
                for line in shares
            ],
        )
