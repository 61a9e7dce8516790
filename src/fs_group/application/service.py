"""GroupDirectoryService — membership guard + roster access for the other contexts."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.errors import NotGroupMemberError, PlaceholderNotFoundError
from src.fs_group.domain.models import Roster
from src.fs_group.domain.repository import GroupDirectoryProtocol
from src.fs_group.infrastructure.persistence import GroupDirectoryRepository

logger = logging.getLogger(__name__)


class GroupDirectoryService:
    def __init__(self, repo: GroupDirectoryProtocol | None = None) -> None:
        self._repo: GroupDirectoryProtocol = repo or GroupDirectoryRepository()

    async def ensure_member(self, db: AsyncSession, group_id: str, member_id: str) -> None:
        """Raise NotGroupMemberError before any record of the group is touched."""
        if not await self._repo.is_member(db, group_id, member_id):
            raise NotGroupMemberError(group_id)

    async def get_roster(self, db: AsyncSession, group_id: str) -> Roster:
        return await self._repo.get_roster(db, group_id)

    async def claim_placeholder(
        self, db: AsyncSession, group_id: str, placeholder_id: str, member_id: str
    ) -> None:
        """Merge a placeholder into a member atomically.

        Afterwards every ledger row that named the placeholder names the member,
        so balance computation never has to resolve placeholder indirection.
        """
        try:
            ok = await self._repo.reassign_placeholder(db, group_id, placeholder_id, member_id)
            if not ok:
                raise PlaceholderNotFoundError(placeholder_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Placeholder claimed: group=%s placeholder=%s member=%s",
            group_id, placeholder_id, member_id,
        )
