"""ReceiptApplicationService — receipt sessions from creation to expense.

Flow per mutation:
1. Membership guard (before any read of the session).
2. State-machine guard + write inside one transaction.
3. Commit, then a best-effort broadcast: a failed publish is logged and
   never reaches the caller. Subscribers re-fetch state on every event.

Finalize locks the session row (FOR UPDATE) so two concurrent finalizes
serialise; the second one overwrites the same linked expense.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fs_common.datetime_utils import expires_after, utc_now
from src.fs_common.enums import (
    ClaimAction,
    FinalizeOutcome,
    RealtimeEventType,
    RemainderPolicy,
)
from src.fs_common.errors import ReceiptSessionNotFoundError, SessionExpiredError, ValidationError
from src.fs_common.money import cents_to_display
from src.fs_common.participants import describe_participant
from src.fs_expense.domain.models import ExpenseDraft, ShareLine
from src.fs_expense.domain.repository import ExpenseRepositoryProtocol
from src.fs_expense.infrastructure.persistence import ExpenseRepository
from src.fs_gateway.auth.dependencies import AuthenticatedMember
from src.fs_group.application.service import GroupDirectoryService
from src.fs_realtime.application.broadcaster import SessionBroadcaster
from src.fs_realtime.application.schemas import RealtimeEvent
from src.fs_receipt.application.claim_registry import ClaimRegistry
from src.fs_receipt.application.schemas import (
    ActiveSessionOut,
    ActiveSessionsResponse,
    ClaimRequest,
    ClaimResponse,
    CreateReceiptSessionRequest,
    FinalizeResponse,
    FinalShareOut,
    ReceiptSessionOut,
    SessionActionResponse,
    claimant_summaries,
)
from src.fs_receipt.domain.extraction import normalize_extraction
from src.fs_receipt.domain.models import ReceiptSession
from src.fs_receipt.domain.reconciliation import reconcile, share_per_claimant
from src.fs_receipt.domain.repository import ReceiptRepositoryProtocol
from src.fs_receipt.domain.state import ensure_cancellable, ensure_finalizable, ensure_reopenable
from src.fs_receipt.infrastructure.persistence import ReceiptRepository

logger = logging.getLogger(__name__)


def expense_description(merchant: str, receipt_date: datetime | None, now: datetime) -> str:
    """'Tesco (3 Mar 18:42)': receipt day, finalize time."""
    day = receipt_date or now
    return f"{merchant} ({day.day} {day.strftime('%b')} {now.strftime('%H:%M')})"


class ReceiptApplicationService:
    def __init__(
        self,
        repo: ReceiptRepositoryProtocol | None = None,
        expense_repo: ExpenseRepositoryProtocol | None = None,
        directory: GroupDirectoryService | None = None,
        ttl_minutes: int | None = None,
        remainder_policy: RemainderPolicy | None = None,
    ) -> None:
        self._repo: ReceiptRepositoryProtocol = repo or ReceiptRepository()
        self._expenses: ExpenseRepositoryProtocol = expense_repo or ExpenseRepository()
        self._directory = directory or GroupDirectoryService()
        self._registry = ClaimRegistry(self._repo)
        self._ttl_minutes = (
            settings.RECEIPT_SESSION_TTL_MINUTES if ttl_minutes is None else ttl_minutes
        )
        self._policy = remainder_policy or RemainderPolicy(settings.FINAL_REMAINDER_POLICY)

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    async def create_session(
        self,
        db: AsyncSession,
        group_id: str,
        member: AuthenticatedMember,
        req: CreateReceiptSessionRequest,
    ) -> ReceiptSessionOut:
        await self._directory.ensure_member(db, group_id, member.id)
        roster = await self._directory.get_roster(db, group_id)

        participants = [p.to_ref() for p in req.participants]
        if len(set(participants)) != len(participants):
            raise ValidationError("Participants must be unique")
        for ref in participants:
            if not roster.contains(ref):
                raise ValidationError(f"{ref.key} is not a participant of this group")

        receipt = normalize_extraction(req.extracted)
        expires_at = expires_after(self._ttl_minutes)
        try:
            session, items = await self._repo.create_session(
                db, group_id, member.id, receipt, participants, expires_at
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Receipt session created: group=%s session=%s items=%d total=%d participants=%d",
            group_id, session.id, len(items), session.total_cents, len(participants),
        )
        return ReceiptSessionOut.build(session, items, {}, roster.names, member.id)

    async def get_session_state(
        self, db: AsyncSession, group_id: str, session_id: str, member_id: str
    ) -> ReceiptSessionOut:
        """Full claim state; stays readable after expiry."""
        await self._directory.ensure_member(db, group_id, member_id)
        session = await self._load(db, group_id, session_id)
        items = await self._repo.list_items(db, session.id)
        claims = await self._repo.list_claims(db, session.id)
        roster = await self._directory.get_roster(db, group_id)
        return ReceiptSessionOut.build(session, items, claims, roster.names, member_id)

    async def list_active_sessions(
        self, db: AsyncSession, group_id: str, member_id: str
    ) -> ActiveSessionsResponse:
        await self._directory.ensure_member(db, group_id, member_id)
        sessions = await self._repo.list_active_sessions(db, group_id, utc_now())
        names = (await self._directory.get_roster(db, group_id)).names
        return ActiveSessionsResponse(
            items=[ActiveSessionOut.from_domain(s, names) for s in sessions]
        )

    async def open_stream(
        self, db: AsyncSession, group_id: str, session_id: str, member_id: str
    ) -> ReceiptSession:
        await self._directory.ensure_member(db, group_id, member_id)
        session = await self._load(db, group_id, session_id)
        if session.is_expired():
            raise SessionExpiredError(session.id)
        return session

    # ------------------------------------------------------------------
    # Claim / unclaim
    # ------------------------------------------------------------------

    async def claim(
        self,
        db: AsyncSession,
        group_id: str,
        session_id: str,
        member: AuthenticatedMember,
        req: ClaimRequest,
        broadcaster: SessionBroadcaster | None = None,
    ) -> ClaimResponse:
        await self._directory.ensure_member(db, group_id, member.id)
        participant = req.participant_or(member.ref)
        try:
            session = await self._load(db, group_id, session_id)
            item, claimants = await self._registry.apply(
                db, session, req.item_id, participant, req.action
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        share = share_per_claimant(item.price_cents, len(claimants))
        summaries = claimant_summaries(claimants)
        await self._notify(
            broadcaster,
            RealtimeEvent(
                type=(
                    RealtimeEventType.ITEM_CLAIMED
                    if req.action is ClaimAction.CLAIM
                    else RealtimeEventType.ITEM_UNCLAIMED
                ),
                session_id=session.id,
                member_id=member.id,
                member_name=member.name,
                item_id=item.id,
                item_name=item.name,
                item_price_cents=item.price_cents,
                total_claims=len(claimants),
                share_per_person_cents=share,
                claimants=summaries,
            ),
        )
        return ClaimResponse(
            action=req.action,
            item_id=item.id,
            total_claims=len(claimants),
            share_per_person_cents=share,
            claimants=summaries,
        )

    # ------------------------------------------------------------------
    # Finalize / reopen / cancel
    # ------------------------------------------------------------------

    async def finalize(
        self,
        db: AsyncSession,
        group_id: str,
        session_id: str,
        member: AuthenticatedMember,
        broadcaster: SessionBroadcaster | None = None,
    ) -> FinalizeResponse:
        await self._directory.ensure_member(db, group_id, member.id)
        roster = await self._directory.get_roster(db, group_id)
        now = utc_now()
        try:
            session = await self._load(db, group_id, session_id, for_update=True)
            ensure_finalizable(session, member.id, now)

            items = await self._repo.list_items(db, session.id)
            claims = await self._repo.list_claims(db, session.id)
            result = reconcile(
                items=items,
                claims={
                    item_id: [c.participant for c in claimants]
                    for item_id, claimants in claims.items()
                },
                participants=session.participants,
                subtotal_cents=session.subtotal_cents,
                tax_cents=session.tax_cents,
                tip_cents=session.tip_cents,
                total_cents=session.total_cents,
                payer=member.ref,
                policy=self._policy,
            )

            draft = ExpenseDraft(
                group_id=group_id,
                description=expense_description(session.merchant, session.receipt_date, now),
                amount_cents=result.amount_cents,
                paid_by=member.ref,
                spent_at=session.receipt_date or now,
                created_by=member.id,
                shares=[ShareLine(s.participant, s.amount_cents) for s in result.shares],
                receipt_session_id=session.id,
            )
            expense = None
            outcome = FinalizeOutcome.CREATED
            if session.expense_id is not None:
                expense = await self._expenses.replace_expense(db, session.expense_id, draft)
                if expense is not None:
                    outcome = FinalizeOutcome.UPDATED
                else:
                    logger.warning(
                        "Linked expense %s of session %s is gone; creating a new one",
                        session.expense_id, session.id,
                    )
            if expense is None:
                expense = await self._expenses.insert_expense(db, draft)

            await self._repo.complete_session(db, session.id, expense.id, member.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Receipt session finalized: session=%s expense=%s outcome=%s amount=%d shares=%d",
            session.id, expense.id, outcome.value, result.amount_cents, len(result.shares),
        )
        await self._notify(
            broadcaster,
            RealtimeEvent(
                type=RealtimeEventType.SESSION_FINALIZED,
                session_id=session.id,
                member_id=member.id,
                member_name=member.name,
                expense_id=expense.id,
            ),
        )
        names = roster.names
        return FinalizeResponse(
            session_id=session.id,
            expense_id=expense.id,
            outcome=outcome,
            description=draft.description,
            amount_cents=result.amount_cents,
            shares=[
                FinalShareOut(
                    participant_id=s.participant.id,
                    participant_kind=s.participant.kind.value,
                    name=describe_participant(s.participant, names),
                    amount_cents=s.amount_cents,
                    amount_display=cents_to_display(s.amount_cents),
                )
                for s in result.shares
            ],
        )

    async def reopen(
        self,
        db: AsyncSession,
        group_id: str,
        session_id: str,
        member: AuthenticatedMember,
        broadcaster: SessionBroadcaster | None = None,
    ) -> SessionActionResponse:
        """Creator or last re-opener only; the re-opener then controls the next finalize."""
        await self._directory.ensure_member(db, group_id, member.id)
        try:
            session = await self._load(db, group_id, session_id, for_update=True)
            ensure_reopenable(session, member.id)
            await self._repo.reopen_session(db, session.id, member.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Receipt session reopened: session=%s by=%s", session.id, member.id)
        await self._notify(
            broadcaster,
            RealtimeEvent(
                type=RealtimeEventType.SESSION_REOPENED,
                session_id=session.id,
                member_id=member.id,
                member_name=member.name,
            ),
        )
        return SessionActionResponse(
            session_id=session.id,
            status="claiming",
            message="Session has been re-opened for editing",
        )

    async def cancel(
        self,
        db: AsyncSession,
        group_id: str,
        session_id: str,
        member: AuthenticatedMember,
        broadcaster: SessionBroadcaster | None = None,
    ) -> SessionActionResponse:
        await self._directory.ensure_member(db, group_id, member.id)
        try:
            session = await self._load(db, group_id, session_id, for_update=True)
            ensure_cancellable(session, member.id)
            await self._repo.delete_session(db, session.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Receipt session cancelled: session=%s by=%s", session.id, member.id)
        await self._notify(
            broadcaster,
            RealtimeEvent(
                type=RealtimeEventType.SESSION_CANCELLED,
                session_id=session.id,
                member_id=member.id,
                member_name=member.name,
            ),
        )
        return SessionActionResponse(
            session_id=session.id,
            status="cancelled",
            message="Receipt session has been cancelled and deleted",
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _load(
        self, db: AsyncSession, group_id: str, session_id: str, for_update: bool = False
    ) -> ReceiptSession:
        session = await self._repo.get_session(db, group_id, session_id, for_update=for_update)
        if session is None:
            raise ReceiptSessionNotFoundError(session_id)
        return session

    @staticmethod
    async def _notify(broadcaster: SessionBroadcaster | None, event: RealtimeEvent) -> None:
        if broadcaster is None:
            return
        try:
            await broadcaster.publish(event.session_id, event)
        except Exception:
            logger.exception(
                "Broadcast failed: session=%s event=%s", event.session_id, event.type.value
            )
