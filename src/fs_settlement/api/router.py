"""fs_settlement REST endpoints.

GET  /groups/{group_id}/settlements                              — optimized payments
POST /groups/{group_id}/settlements/{settlement_id}/mark-paid    — persist paid flag
POST /groups/{group_id}/settlements/{settlement_id}/mark-unpaid  — remove paid flag
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.database import get_db_session
from src.fs_common.response import ApiResponse, respond
from src.fs_gateway.auth.dependencies import CurrentMember
from src.fs_settlement.application.service import SettlementApplicationService

router = APIRouter(prefix="/groups/{group_id}/settlements", tags=["settlements"])

_service = SettlementApplicationService()


@router.get("")
async def list_settlements(
    group_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.list_settlements(db, group_id, member.id)
    return respond(request, result)


@router.post("/{settlement_id}/mark-paid")
async def mark_paid(
    group_id: str,
    settlement_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.mark_paid(db, group_id, settlement_id, member.id)
    return respond(request, result)


@router.post("/{settlement_id}/mark-unpaid")
async def mark_unpaid(
    group_id: str,
    settlement_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.mark_unpaid(db, group_id, settlement_id, member.id)
    return respond(request, result)
