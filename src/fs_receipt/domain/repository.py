"""ReceiptRepository Protocol: sessions, items and claim rows."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.participants import ParticipantRef
from src.fs_receipt.domain.models import (
    Claimant,
    ExtractedReceipt,
    ReceiptItem,
    ReceiptSession,
)


class ReceiptRepositoryProtocol(Protocol):
    async def create_session(
        self,
        db: AsyncSession,
        group_id: str,
        created_by: str,
        receipt: ExtractedReceipt,
        participants: list[ParticipantRef],
        expires_at: datetime,
    ) -> tuple[ReceiptSession, list[ReceiptItem]]: ...

    async def get_session(
        self, db: AsyncSession, group_id: str, session_id: str, for_update: bool = False
    ) -> ReceiptSession | None: ...

    async def list_active_sessions(
        self, db: AsyncSession, group_id: str, now: datetime
    ) -> list[ReceiptSession]: ...

    async def list_items(self, db: AsyncSession, session_id: str) -> list[ReceiptItem]: ...

    async def get_item(
        self, db: AsyncSession, session_id: str, item_id: str
    ) -> ReceiptItem | None: ...

    async def list_claims(
        self, db: AsyncSession, session_id: str
    ) -> dict[str, list[Claimant]]: ...

    async def list_item_claimants(self, db: AsyncSession, item_id: str) -> list[Claimant]: ...

    async def insert_claim(
        self, db: AsyncSession, item_id: str, participant: ParticipantRef
    ) -> bool: ...

    async def delete_claim(
        self, db: AsyncSession, item_id: str, participant: ParticipantRef
    ) -> bool: ...

    async def complete_session(
        self, db: AsyncSession, session_id: str, expense_id: str, finalized_by: str
    ) -> None: ...

    async def reopen_session(self, db: AsyncSession, session_id: str, member_id: str) -> None: ...

    async def delete_session(self, db: AsyncSession, session_id: str) -> None: ...
