"""fs_receipt REST + SSE endpoints.

POST /groups/{group_id}/receipts                         — create from extraction
GET  /groups/{group_id}/receipts/active                  — claiming + unexpired
GET  /groups/{group_id}/receipts/{session_id}            — full claim state
POST /groups/{group_id}/receipts/{session_id}/claim      — claim / unclaim an item
POST /groups/{group_id}/receipts/{session_id}/finalize   — write / overwrite the expense
POST /groups/{group_id}/receipts/{session_id}/reopen     — back to claiming
POST /groups/{group_id}/receipts/{session_id}/cancel     — delete (creator only)
GET  /groups/{group_id}/receipts/{session_id}/stream     — Server-Sent Events
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fs_common.database import get_db_session
from src.fs_common.enums import RealtimeEventType
from src.fs_common.response import ApiResponse, respond
from src.fs_gateway.auth.dependencies import CurrentMember
from src.fs_realtime.api.dependencies import Broadcaster
from src.fs_realtime.application.broadcaster import SessionBroadcaster, Subscription
from src.fs_realtime.application.schemas import RealtimeEvent
from src.fs_receipt.application.schemas import ClaimRequest, CreateReceiptSessionRequest
from src.fs_receipt.application.service import ReceiptApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups/{group_id}/receipts", tags=["receipts"])

_service = ReceiptApplicationService()

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    group_id: str,
    body: CreateReceiptSessionRequest,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_session(db, group_id, member, body)
    return respond(request, result)


@router.get("/active")
async def list_active_sessions(
    group_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.list_active_sessions(db, group_id, member.id)
    return respond(request, result)


@router.get("/{session_id}")
async def get_session_state(
    group_id: str,
    session_id: str,
    request: Request,
    member: CurrentMember,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_session_state(db, group_id, session_id, member.id)
    return respond(request, result)


@router.post("/{session_id}/claim")
async def claim_item(
    group_id: str,
    session_id: str,
    body: ClaimRequest,
    request: Request,
    member: CurrentMember,
    broadcaster: Broadcaster,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.claim(db, group_id, session_id, member, body, broadcaster)
    return respond(request, result)


@router.post("/{session_id}/finalize")
async def finalize_session(
    group_id: str,
    session_id: str,
    request: Request,
    member: CurrentMember,
    broadcaster: Broadcaster,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.finalize(db, group_id, session_id, member, broadcaster)
    return respond(request, result)


@router.post("/{session_id}/reopen")
async def reopen_session(
    group_id: str,
    session_id: str,
    request: Request,
    member: CurrentMember,
    broadcaster: Broadcaster,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.reopen(db, group_id, session_id, member, broadcaster)
    return respond(request, result)


@router.post("/{session_id}/cancel")
async def cancel_session(
    group_id: str,
    session_id: str,
    request: Request,
    member: CurrentMember,
    broadcaster: Broadcaster,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.cancel(db, group_id, session_id, member, broadcaster)
    return respond(request, result)


async def event_stream(
    request: Request,
    broadcaster: SessionBroadcaster,
    subscription: Subscription,
    hello: RealtimeEvent,
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    """Yield SSE frames until the client leaves or the broadcaster shuts down."""
    try:
        yield hello.to_sse()
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await subscription.next_event(timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            if event is None:
                break
            yield event.to_sse()
    finally:
        broadcaster.unsubscribe(subscription)
        logger.debug("SSE stream closed: session=%s", subscription.session_id)


@router.get("/{session_id}/stream")
async def stream_session(
    group_id: str,
    session_id: str,
    request: Request,
    member: CurrentMember,
    broadcaster: Broadcaster,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> StreamingResponse:
    try:
        session = await _service.open_stream(db, group_id, session_id, member.id)
    finally:
        # hand the connection back to the pool; the stream never reads the DB
        await db.close()
    subscription = broadcaster.subscribe(session.id)
    hello = RealtimeEvent(
        type=RealtimeEventType.CONNECTED,
        session_id=session.id,
        member_id=member.id,
        member_name=member.name,
        message="Real-time updates enabled",
    )
    try:
        await broadcaster.publish(
            session.id,
            RealtimeEvent(
                type=RealtimeEventType.USER_JOINED,
                session_id=session.id,
                member_id=member.id,
                member_name=member.name,
            ),
        )
    except Exception:
        logger.exception("Broadcast failed: session=%s event=user_joined", session.id)
    return StreamingResponse(
        event_stream(request, broadcaster, subscription, hello, settings.SSE_KEEPALIVE_SECONDS),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
