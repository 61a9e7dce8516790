"""GroupDirectory Protocol: membership and roster reads.

Group and member administration belong to an external collaborator; the
core only reads membership and the roster through this interface.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_group.domain.models import Roster


class GroupDirectoryProtocol(Protocol):
    async def is_member(self, db: AsyncSession, group_id: str, member_id: str) -> bool: ...

    async def get_roster(self, db: AsyncSession, group_id: str) -> Roster: ...

    async def reassign_placeholder(
        self, db: AsyncSession, group_id: str, placeholder_id: str, member_id: str
    ) -> bool: ...
