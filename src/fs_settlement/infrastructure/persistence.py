"""SettlementRepository — paid flags for optimizer suggestions.

Transaction ownership: the application service commits / rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.errors import InternalError
from src.fs_common.participants import ParticipantRef
from src.fs_settlement.domain.models import SettlementRecord, Transaction

# Serialises concurrent mark-paid calls of one group: each recomputes
# balances after the lock, so a double click finds nothing left to pay.
_LOCK_GROUP_SQL = text("""
    SELECT id FROM groups WHERE id = :group_id FOR UPDATE
""")

_INSERT_RECORD_SQL = text("""
    INSERT INTO settlement_records
        (group_id, settlement_id, from_id, from_kind, to_id, to_kind,
         amount_cents, marked_by)
    VALUES
        (:group_id, :settlement_id, :from_id, :from_kind, :to_id, :to_kind,
         :amount_cents, :marked_by)
    RETURNING id, group_id, settlement_id, from_id, from_kind, to_id, to_kind,
              amount_cents, marked_by, paid_at
""")

_DELETE_LATEST_RECORD_SQL = text("""
    DELETE FROM settlement_records
    WHERE id = (
        SELECT id FROM settlement_records
        WHERE group_id = :group_id AND settlement_id = :settlement_id
        ORDER BY paid_at DESC, id DESC
        LIMIT 1
    )
    RETURNING id
""")


def _row_to_record(row: object) -> SettlementRecord:
    return SettlementRecord(
        id=str(row.id),  # type: ignore[attr-defined]
        settlement_id=row.settlement_id,  # type: ignore[attr-defined]
        group_id=str(row.group_id),  # type: ignore[attr-defined]
        sender=ParticipantRef.from_row(row.from_id, row.from_kind),  # type: ignore[attr-defined]
        receiver=ParticipantRef.from_row(row.to_id, row.to_kind),  # type: ignore[attr-defined]
        amount_cents=row.amount_cents,  # type: ignore[attr-defined]
        marked_by=str(row.marked_by),  # type: ignore[attr-defined]
        paid_at=row.paid_at,  # type: ignore[attr-defined]
    )


class SettlementRepository:
    async def lock_group(self, db: AsyncSession, group_id: str) -> None:
        await db.execute(_LOCK_GROUP_SQL, {"group_id": group_id})

    async def insert_record(
        self, db: AsyncSession, group_id: str, txn: Transaction, marked_by: str
    ) -> SettlementRecord:
        result = await db.execute(
            _INSERT_RECORD_SQL,
            {
                "group_id": group_id,
                "settlement_id": txn.settlement_id,
                "from_id": txn.sender.id,
                "from_kind": txn.sender.kind.value,
                "to_id": txn.receiver.id,
                "to_kind": txn.receiver.kind.value,
                "amount_cents": txn.amount_cents,
                "marked_by": marked_by,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Settlement insert returned no rows")
        return _row_to_record(row)

    async def delete_latest_record(
        self, db: AsyncSession, group_id: str, settlement_id: str
    ) -> bool:
        result = await db.execute(
            _DELETE_LATEST_RECORD_SQL, {"group_id": group_id, "settlement_id": settlement_id}
        )
        return result.fetchone() is not None
