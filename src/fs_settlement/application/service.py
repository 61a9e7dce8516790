"""SettlementApplicationService — optimizer on demand + paid/unpaid flags.

Suggestions are never persisted; a paid flag is a SettlementRecord keyed by
the suggestion's deterministic id, which the ledger folds back in.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.errors import SettlementNotFoundError
from src.fs_group.application.service import GroupDirectoryService
from src.fs_ledger.application.service import LedgerApplicationService
from src.fs_settlement.application.schemas import (
    MarkPaidResponse,
    MarkUnpaidResponse,
    SettlementsResponse,
    SettlementTransactionOut,
)
from src.fs_settlement.domain.optimizer import optimize_settlements
from src.fs_settlement.domain.repository import SettlementRepositoryProtocol
from src.fs_settlement.infrastructure.persistence import SettlementRepository

logger = logging.getLogger(__name__)


class SettlementApplicationService:
    def __init__(
        self,
        repo: SettlementRepositoryProtocol | None = None,
        ledger: LedgerApplicationService | None = None,
        directory: GroupDirectoryService | None = None,
    ) -> None:
        self._repo: SettlementRepositoryProtocol = repo or SettlementRepository()
        self._directory = directory or GroupDirectoryService()
        self._ledger = ledger or LedgerApplicationService(directory=self._directory)

    async def list_settlements(
        self, db: AsyncSession, group_id: str, member_id: str
    ) -> SettlementsResponse:
        await self._directory.ensure_member(db, group_id, member_id)
        roster, balances = await self._ledger.load_balances(db, group_id)
        transactions = optimize_settlements(balances, group_id)
        return SettlementsResponse(
            group_id=group_id,
            settlements=[SettlementTransactionOut.from_domain(t, roster) for t in transactions],
        )

    async def mark_paid(
        self, db: AsyncSession, group_id: str, settlement_id: str, member_id: str
    ) -> MarkPaidResponse:
        await self._directory.ensure_member(db, group_id, member_id)
        try:
            await self._repo.lock_group(db, group_id)
            _, balances = await self._ledger.load_balances(db, group_id)
            current = {t.settlement_id: t for t in optimize_settlements(balances, group_id)}
            txn = current.get(settlement_id)
            if txn is None:
                raise SettlementNotFoundError(settlement_id)
            record = await self._repo.insert_record(db, group_id, txn, member_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Settlement marked paid: group=%s id=%s %s -> %s %d cents",
            group_id, settlement_id, txn.sender.key, txn.receiver.key, txn.amount_cents,
        )
        return MarkPaidResponse.from_record(record)

    async def mark_unpaid(
        self, db: AsyncSession, group_id: str, settlement_id: str, member_id: str
    ) -> MarkUnpaidResponse:
        await self._directory.ensure_member(db, group_id, member_id)
        try:
            removed = await self._repo.delete_latest_record(db, group_id, settlement_id)
            if not removed:
                raise SettlementNotFoundError(settlement_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Settlement marked unpaid: group=%s id=%s", group_id, settlement_id)
        return MarkUnpaidResponse(settlement_id=settlement_id, removed=True)
