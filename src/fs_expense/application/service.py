"""ExpenseApplicationService — direct expense entry.

Every write validates the full share set against the group roster first and
then runs in one transaction: nothing is ever partially applied.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.datetime_utils import utc_now
from src.fs_common.errors import ExpenseNotFoundError, ValidationError
from src.fs_expense.application.schemas import (
    DeleteExpenseResponse,
    ExpenseListResponse,
    ExpenseOut,
    ExpenseRequest,
)
from src.fs_expense.domain.models import ExpenseDraft
from src.fs_expense.domain.repository import ExpenseRepositoryProtocol
from src.fs_expense.domain.validation import validate_expense
from src.fs_expense.infrastructure.persistence import ExpenseRepository
from src.fs_group.application.service import GroupDirectoryService

logger = logging.getLogger(__name__)


class ExpenseApplicationService:
    def __init__(
        self,
        repo: ExpenseRepositoryProtocol | None = None,
        directory: GroupDirectoryService | None = None,
    ) -> None:
        self._repo: ExpenseRepositoryProtocol = repo or ExpenseRepository()
        self._directory = directory or GroupDirectoryService()

    async def list_expenses(
        self, db: AsyncSession, group_id: str, member_id: str
    ) -> ExpenseListResponse:
        await self._directory.ensure_member(db, group_id, member_id)
        roster = await self._directory.get_roster(db, group_id)
        expenses = await self._repo.list_expenses(db, group_id)
        names = roster.names
        return ExpenseListResponse(items=[ExpenseOut.from_domain(e, names) for e in expenses])

    async def create_expense(
        self, db: AsyncSession, group_id: str, member_id: str, req: ExpenseRequest
    ) -> ExpenseOut:
        await self._directory.ensure_member(db, group_id, member_id)
        roster = await self._directory.get_roster(db, group_id)
        draft = self._build_draft(group_id, member_id, req)
        validate_expense(draft.amount_cents, draft.paid_by, draft.shares, roster.refs)
        try:
            expense = await self._repo.insert_expense(db, draft)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Expense created: group=%s id=%s amount=%d payer=%s shares=%d",
            group_id, expense.id, expense.amount_cents, expense.paid_by.key, len(expense.shares),
        )
        return ExpenseOut.from_domain(expense, roster.names)

    async def replace_expense(
        self,
        db: AsyncSession,
        group_id: str,
        expense_id: str,
        member_id: str,
        req: ExpenseRequest,
    ) -> ExpenseOut:
        await self._directory.ensure_member(db, group_id, member_id)
        existing = await self._repo.get_expense(db, group_id, expense_id)
        if existing is None:
            raise ExpenseNotFoundError(expense_id)
        if existing.receipt_session_id is not None:
            raise ValidationError(
                "This expense was produced by a receipt session; re-open the session to edit it"
            )
        roster = await self._directory.get_roster(db, group_id)
        draft = self._build_draft(group_id, member_id, req)
        draft.spent_at = req.spent_at or existing.spent_at
        validate_expense(draft.amount_cents, draft.paid_by, draft.shares, roster.refs)
        try:
            expense = await self._repo.replace_expense(db, expense_id, draft)
            if expense is None:
                raise ExpenseNotFoundError(expense_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Expense replaced: group=%s id=%s amount=%d shares=%d",
            group_id, expense_id, expense.amount_cents, len(expense.shares),
        )
        return ExpenseOut.from_domain(expense, roster.names)

    async def delete_expense(
        self, db: AsyncSession, group_id: str, expense_id: str, member_id: str
    ) -> DeleteExpenseResponse:
        await self._directory.ensure_member(db, group_id, member_id)
        try:
            deleted = await self._repo.delete_expense(db, group_id, expense_id)
            if not deleted:
                raise ExpenseNotFoundError(expense_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Expense deleted: group=%s id=%s", group_id, expense_id)
        return DeleteExpenseResponse(expense_id=expense_id, deleted=True)

    @staticmethod
    def _build_draft(group_id: str, member_id: str, req: ExpenseRequest) -> ExpenseDraft:
        return ExpenseDraft(
            group_id=group_id,
            description=req.description,
            amount_cents=req.amount_cents,
            paid_by=req.payer,
            spent_at=req.spent_at or utc_now(),
            created_by=member_id,
            shares=[p.to_domain() for p in req.participants],
        )
