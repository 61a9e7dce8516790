"""ClaimRegistry — idempotent claim / unclaim of receipt items.

Both operations return the item's claimant set as stored after the write.
A duplicate claim or an unclaim of an absent claim is a silent no-op: two
people tapping the same item at once is the normal case, and the second tap
should read as success. Different participants never conflict; the same
(item, participant) pair is last-write-wins.

The caller owns the transaction.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.enums import ClaimAction
from src.fs_common.errors import ReceiptItemNotFoundError, ValidationError
from src.fs_common.participants import ParticipantRef
from src.fs_receipt.domain.models import Claimant, ReceiptItem, ReceiptSession
from src.fs_receipt.domain.repository import ReceiptRepositoryProtocol
from src.fs_receipt.domain.state import ensure_claimable

logger = logging.getLogger(__name__)


class ClaimRegistry:
    def __init__(self, repo: ReceiptRepositoryProtocol) -> None:
        self._repo = repo

    async def apply(
        self,
        db: AsyncSession,
        session: ReceiptSession,
        item_id: str,
        participant: ParticipantRef,
        action: ClaimAction,
        now: datetime | None = None,
    ) -> tuple[ReceiptItem, list[Claimant]]:
        ensure_claimable(session, now)
        item = await self._repo.get_item(db, session.id, item_id)
        if item is None:
            raise ReceiptItemNotFoundError(item_id)
        if participant not in session.participants:
            raise ValidationError(
                f"{participant.key} is not a participant of receipt session {session.id}"
            )

        if action is ClaimAction.CLAIM:
            changed = await self._repo.insert_claim(db, item.id, participant)
        else:
            changed = await self._repo.delete_claim(db, item.id, participant)
        if not changed:
            logger.debug(
                "No-op %s: item=%s participant=%s", action.value, item.id, participant.key
            )

        claimants = await self._repo.list_item_claimants(db, item.id)
        return item, claimants

    async def claim(
        self,
        db: AsyncSession,
        session: ReceiptSession,
        item_id: str,
        participant: ParticipantRef,
        now: datetime | None = None,
    ) -> tuple[ReceiptItem, list[Claimant]]:
        return await self.apply(db, session, item_id, participant, ClaimAction.CLAIM, now)

    async def unclaim(
        self,
        db: AsyncSession,
        session: ReceiptSession,
        item_id: str,
        participant: ParticipantRef,
        now: datetime | None = None,
    ) -> tuple[ReceiptItem, list[Claimant]]:
        return await self.apply(db, session, item_id, participant, ClaimAction.UNCLAIM, now)
