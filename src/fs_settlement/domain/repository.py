"""SettlementRepository Protocol: paid-flag records."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_settlement.domain.models import SettlementRecord, Transaction


class SettlementRepositoryProtocol(Protocol):
    async def lock_group(self, db: AsyncSession, group_id: str) -> None: ...

    async def insert_record(
        self, db: AsyncSession, group_id: str, txn: Transaction, marked_by: str
    ) -> SettlementRecord: ...

    async def delete_latest_record(
        self, db: AsyncSession, group_id: str, settlement_id: str
    ) -> bool: ...
