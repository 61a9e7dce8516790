"""fs_expense REST endpoints.

GET    /groups/{group_id}/expenses               — list with shares
POST   /groups/{group_id}/expenses               — create
PUT    /groups/{group_id}/expenses/{expense_id}  — full replace
DELETE /groups/{group_id}/expenses/{expense_id}  — delete (shares cascade)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.database import get_db_session
from src.fs_common.response import ApiResponse, respond
from src.fs_expense.application.schemas import ExpenseRequest
from src.fs_expense.application.service import ExpenseApplicationService
from src.fs_gateway.auth.dependencies import CurrentMember

router = APIRouter(prefix="/groups/{group_id}/expenses", tags=["expenses"])

_service = ExpenseApplicationService()


@router.get("")
async def list_expenses(
    group_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.list_expenses(db, group_id, member.id)
    return respond(request, result)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    group_id: str,
    body: ExpenseRequest,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_expense(db, group_id, member.id, body)
    return respond(request, result)


@router.put("/{expense_id}")
async def replace_expense(
    group_id: str,
    expense_id: str,
    body: ExpenseRequest,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.replace_expense(db, group_id, expense_id, member.id, body)
    return respond(request, result)


@router.delete("/{expense_id}")
async def delete_expense(
    group_id: str,
    expense_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.delete_expense(db, group_id, expense_id, member.id)
    return respond(request, result)
