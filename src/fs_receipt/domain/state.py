"""Receipt-session state machine guards.

    claiming --finalize--> completed --reopen--> claiming

Every guard raises before anything is written.
"""

from datetime import datetime

from src.fs_common.enums import ReceiptSessionStatus
from src.fs_common.errors import (
    NotSessionControllerError,
    NotSessionCreatorError,
    SessionExpiredError,
    SessionNotCancellableError,
    SessionNotClaimableError,
    SessionNotReopenableError,
)
from src.fs_receipt.domain.models import ReceiptSession


def ensure_claimable(session: ReceiptSession, now: datetime | None = None) -> None:
    if session.is_expired(now):
        raise SessionExpiredError(session.id)
    if session.status is not ReceiptSessionStatus.CLAIMING:
        raise SessionNotClaimableError(session.id, session.status.value)


def ensure_finalizable(
    session: ReceiptSession, member_id: str, now: datetime | None = None
) -> None:
    """Finalize is allowed from `claiming` and, as an idempotent retry, from `completed`."""
    if not session.is_controller(member_id):
        raise NotSessionControllerError()
    if session.is_expired(now):
        raise SessionExpiredError(session.id)


def ensure_reopenable(
    session: ReceiptSession, member_id: str, now: datetime | None = None
) -> None:
    """Only the creator or the last re-opener may hand the session back to claiming."""
    if not session.is_controller(member_id):
        raise NotSessionControllerError()
    if session.status is not ReceiptSessionStatus.COMPLETED:
        raise SessionNotReopenableError(session.id, session.status.value)
    if session.is_expired(now):
        raise SessionExpiredError(session.id)


def ensure_cancellable(session: ReceiptSession, member_id: str) -> None:
    if session.expense_id is not None:
        raise SessionNotCancellableError(session.id)
    if member_id != session.created_by:
        raise NotSessionCreatorError()
