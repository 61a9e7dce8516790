"""fs_ledger REST endpoints.

GET /groups/{group_id}/balances — per-participant net position
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.database import get_db_session
from src.fs_common.response import ApiResponse, respond
from src.fs_gateway.auth.dependencies import CurrentMember
from src.fs_ledger.application.service import LedgerApplicationService

router = APIRouter(prefix="/groups/{group_id}/balances", tags=["balances"])

_service = LedgerApplicationService()


@router.get("")
async def get_balances(
    group_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_balances(db, group_id, member.id)
    return respond(request, result)
