"""ExpenseRepository Protocol: expenses and their share sets."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_expense.domain.models import Expense, ExpenseDraft


class ExpenseRepositoryProtocol(Protocol):
    async def insert_expense(self, db: AsyncSession, draft: ExpenseDraft) -> Expense: ...

    async def replace_expense(
        self, db: AsyncSession, expense_id: str, draft: ExpenseDraft
    ) -> Expense | None: ...

    async def delete_expense(self, db: AsyncSession, group_id: str, expense_id: str) -> bool: ...

    async def get_expense(
        self, db: AsyncSession, group_id: str, expense_id: str
    ) -> Expense | None: ...

    async def list_expenses(self, db: AsyncSession, group_id: str) -> list[Expense]: ...
