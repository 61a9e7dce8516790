"""ReceiptRepository — sessions, items and claims over raw text() SQL.

Claim uniqueness lives in the schema: UNIQUE (receipt_item_id,
participant_id, participant_kind). Racing duplicate claims collapse through
ON CONFLICT DO NOTHING; an unclaim that deletes nothing is equally fine.
Transaction ownership stays with the application service.
"""

from collections import defaultdict
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.enums import ReceiptSessionStatus
from src.fs_common.errors import InternalError
from src.fs_common.participants import ParticipantRef
from src.fs_receipt.domain.models import (
    Claimant,
    ExtractedReceipt,
    ReceiptItem,
    ReceiptSession,
)

# ---------------------------------------------------------------------------
# SQL: sessions
# ---------------------------------------------------------------------------

_SESSION_COLUMNS = """
    id, group_id, created_by, status, expires_at, merchant, receipt_date,
    subtotal_cents, tax_cents, tip_cents, total_cents, expense_id,
    reopened_by, reopened_at, finalized_by, created_at
"""

_INSERT_SESSION_SQL = text(f"""
    INSERT INTO receipt_sessions
        (group_id, created_by, status, expires_at, merchant, receipt_date,
         subtotal_cents, tax_cents, tip_cents, total_cents)
    VALUES
        (:group_id, :created_by, 'claiming', :expires_at, :merchant, :receipt_date,
         :subtotal_cents, :tax_cents, :tip_cents, :total_cents)
    RETURNING {_SESSION_COLUMNS}
""")

_INSERT_PARTICIPANT_SQL = text("""
    INSERT INTO receipt_session_participants
        (receipt_session_id, participant_id, participant_kind, position)
    VALUES (:session_id, :participant_id, :participant_kind, :position)
""")

_INSERT_ITEM_SQL = text("""
    INSERT INTO receipt_items (receipt_session_id, name, price_cents, position)
    VALUES (:session_id, :name, :price_cents, :position)
    RETURNING id, receipt_session_id, name, price_cents, position
""")

_GET_SESSION_SQL = text(f"""
    SELECT {_SESSION_COLUMNS}
    FROM receipt_sessions
    WHERE id = :session_id AND group_id = :group_id
""")

_GET_SESSION_FOR_UPDATE_SQL = text(f"""
    SELECT {_SESSION_COLUMNS}
    FROM receipt_sessions
    WHERE id = :session_id AND group_id = :group_id
    FOR UPDATE
""")

_LIST_PARTICIPANTS_SQL = text("""
    SELECT participant_id, participant_kind
    FROM receipt_session_participants
    WHERE receipt_session_id = :session_id
    ORDER BY position
""")

_LIST_ACTIVE_SQL = text(f"""
    SELECT {_SESSION_COLUMNS}
    FROM receipt_sessions
    WHERE group_id = :group_id AND status = 'claiming' AND expires_at > :now
    ORDER BY created_at DESC, id
""")

_COMPLETE_SESSION_SQL = text("""
    UPDATE receipt_sessions
    SET status = 'completed', expense_id = :expense_id,
        finalized_by = :finalized_by, updated_at = NOW()
    WHERE id = :session_id
""")

_REOPEN_SESSION_SQL = text("""
    UPDATE receipt_sessions
    SET status = 'claiming', reopened_by = :member_id,
        reopened_at = NOW(), updated_at = NOW()
    WHERE id = :session_id
""")

# items, claims and participants go with it (ON DELETE CASCADE)
_DELETE_SESSION_SQL = text("""
    DELETE FROM receipt_sessions WHERE id = :session_id
""")

# ---------------------------------------------------------------------------
# SQL: items + claims
# ---------------------------------------------------------------------------

_LIST_ITEMS_SQL = text("""
    SELECT id, receipt_session_id, name, price_cents, position
    FROM receipt_items
    WHERE receipt_session_id = :session_id
    ORDER BY position
""")

_GET_ITEM_SQL = text("""
    SELECT id, receipt_session_id, name, price_cents, position
    FROM receipt_items
    WHERE id = :item_id AND receipt_session_id = :session_id
""")

_CLAIMANT_SELECT = """
    SELECT c.receipt_item_id, c.participant_id, c.participant_kind, c.claimed_at,
           COALESCE(u.name, p.name) AS name,
           u.image AS image
    FROM receipt_item_claims c
    LEFT JOIN users u
        ON c.participant_kind = 'member' AND u.id = c.participant_id
    LEFT JOIN placeholder_users p
        ON c.participant_kind = 'placeholder' AND p.id = c.participant_id
"""

_LIST_SESSION_CLAIMS_SQL = text(f"""
    {_CLAIMANT_SELECT}
    JOIN receipt_items i ON i.id = c.receipt_item_id
    WHERE i.receipt_session_id = :session_id
    ORDER BY i.position, c.claimed_at, c.id
""")

_LIST_ITEM_CLAIMS_SQL = text(f"""
    {_CLAIMANT_SELECT}
    WHERE c.receipt_item_id = :item_id
    ORDER BY c.claimed_at, c.id
""")

_INSERT_CLAIM_SQL = text("""
    INSERT INTO receipt_item_claims (receipt_item_id, participant_id, participant_kind)
    VALUES (:item_id, :participant_id, :participant_kind)
    ON CONFLICT (receipt_item_id, participant_id, participant_kind) DO NOTHING
    RETURNING id
""")

_DELETE_CLAIM_SQL = text("""
    DELETE FROM receipt_item_claims
    WHERE receipt_item_id = :item_id
      AND participant_id = :participant_id AND participant_kind = :participant_kind
    RETURNING id
""")


def _row_to_session(row: object, participants: list[ParticipantRef]) -> ReceiptSession:
    return ReceiptSession(
        id=str(row.id),  # type: ignore[attr-defined]
        group_id=str(row.group_id),  # type: ignore[attr-defined]
        created_by=str(row.created_by),  # type: ignore[attr-defined]
        status=ReceiptSessionStatus(row.status),  # type: ignore[attr-defined]
        expires_at=row.expires_at,  # type: ignore[attr-defined]
        merchant=row.merchant,  # type: ignore[attr-defined]
        receipt_date=row.receipt_date,  # type: ignore[attr-defined]
        subtotal_cents=row.subtotal_cents,  # type: ignore[attr-defined]
        tax_cents=row.tax_cents,  # type: ignore[attr-defined]
        tip_cents=row.tip_cents,  # type: ignore[attr-defined]
        total_cents=row.total_cents,  # type: ignore[attr-defined]
        participants=participants,
        expense_id=str(row.expense_id) if row.expense_id else None,  # type: ignore[attr-defined]
        reopened_by=str(row.reopened_by) if row.reopened_by else None,  # type: ignore[attr-defined]
        reopened_at=row.reopened_at,  # type: ignore[attr-defined]
        finalized_by=str(row.finalized_by) if row.finalized_by else None,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_item(row: object) -> ReceiptItem:
    return ReceiptItem(
        id=str(row.id),  # type: ignore[attr-defined]
        session_id=str(row.receipt_session_id),  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        price_cents=row.price_cents,  # type: ignore[attr-defined]
        position=row.position,  # type: ignore[attr-defined]
    )


def _row_to_claimant(row: object) -> Claimant:
    ref = ParticipantRef.from_row(row.participant_id, row.participant_kind)  # type: ignore[attr-defined]
    return Claimant(
        participant=ref,
        name=row.name or "Unknown User",  # type: ignore[attr-defined]
        image=row.image,  # type: ignore[attr-defined]
        claimed_at=row.claimed_at,  # type: ignore[attr-defined]
    )


def _participant_params(item_id: str, participant: ParticipantRef) -> dict:
    return {
        "item_id": item_id,
        "participant_id": participant.id,
        "participant_kind": participant.kind.value,
    }


class ReceiptRepository:
    async def create_session(
        self,
        db: AsyncSession,
        group_id: str,
        created_by: str,
        receipt: ExtractedReceipt,
        participants: list[ParticipantRef],
        expires_at: datetime,
    ) -> tuple[ReceiptSession, list[ReceiptItem]]:
        row = (
            await db.execute(
                _INSERT_SESSION_SQL,
                {
                    "group_id": group_id,
                    "created_by": created_by,
                    "expires_at": expires_at,
                    "merchant": receipt.merchant,
                    "receipt_date": receipt.receipt_date,
                    "subtotal_cents": receipt.subtotal_cents,
                    "tax_cents": receipt.tax_cents,
                    "tip_cents": receipt.tip_cents,
                    "total_cents": receipt.total_cents,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Receipt session insert returned no rows")
        session_id = str(row.id)

        await db.execute(
            _INSERT_PARTICIPANT_SQL,
            [
                {
                    "session_id": session_id,
                    "participant_id": ref.id,
                    "participant_kind": ref.kind.value,
                    "position": position,
                }
                for position, ref in enumerate(participants)
            ],
        )

        items: list[ReceiptItem] = []
        for position, extracted in enumerate(receipt.items):
            item_row = (
                await db.execute(
                    _INSERT_ITEM_SQL,
                    {
                        "session_id": session_id,
                        "name": extracted.name,
                        "price_cents": extracted.price_cents,
                        "position": position,
                    },
                )
            ).fetchone()
            if item_row is None:
                raise InternalError("Receipt item insert returned no rows")
            items.append(_row_to_item(item_row))
        return _row_to_session(row, list(participants)), items

    async def get_session(
        self, db: AsyncSession, group_id: str, session_id: str, for_update: bool = False
    ) -> ReceiptSession | None:
        sql = _GET_SESSION_FOR_UPDATE_SQL if for_update else _GET_SESSION_SQL
        row = (
            await db.execute(sql, {"group_id": group_id, "session_id": session_id})
        ).fetchone()
        if row is None:
            return None
        participant_rows = (
            await db.execute(_LIST_PARTICIPANTS_SQL, {"session_id": session_id})
        ).fetchall()
        participants = [
            ParticipantRef.from_row(r.participant_id, r.participant_kind)
            for r in participant_rows
        ]
        return _row_to_session(row, participants)

    async def list_active_sessions(
        self, db: AsyncSession, group_id: str, now: datetime
    ) -> list[ReceiptSession]:
        rows = (
            await db.execute(_LIST_ACTIVE_SQL, {"group_id": group_id, "now": now})
        ).fetchall()
        # the listing does not need participant sets
        return [_row_to_session(row, []) for row in rows]

    async def list_items(self, db: AsyncSession, session_id: str) -> list[ReceiptItem]:
        rows = (await db.execute(_LIST_ITEMS_SQL, {"session_id": session_id})).fetchall()
        return [_row_to_item(row) for row in rows]

    async def get_item(
        self, db: AsyncSession, session_id: str, item_id: str
    ) -> ReceiptItem | None:
        row = (
            await db.execute(_GET_ITEM_SQL, {"session_id": session_id, "item_id": item_id})
        ).fetchone()
        return _row_to_item(row) if row is not None else None

    async def list_claims(
        self, db: AsyncSession, session_id: str
    ) -> dict[str, list[Claimant]]:
        rows = (
            await db.execute(_LIST_SESSION_CLAIMS_SQL, {"session_id": session_id})
        ).fetchall()
        by_item: dict[str, list[Claimant]] = defaultdict(list)
        for row in rows:
            by_item[str(row.receipt_item_id)].append(_row_to_claimant(row))
        return dict(by_item)

    async def list_item_claimants(self, db: AsyncSession, item_id: str) -> list[Claimant]:
        rows = (await db.execute(_LIST_ITEM_CLAIMS_SQL, {"item_id": item_id})).fetchall()
        return [_row_to_claimant(row) for row in rows]

    async def insert_claim(
        self, db: AsyncSession, item_id: str, participant: ParticipantRef
    ) -> bool:
        """True when a row was written, False when the claim already existed."""
        result = await db.execute(_INSERT_CLAIM_SQL, _participant_params(item_id, participant))
        return result.fetchone() is not None

    async def delete_claim(
        self, db: AsyncSession, item_id: str, participant: ParticipantRef
    ) -> bool:
        result = await db.execute(_DELETE_CLAIM_SQL, _participant_params(item_id, participant))
        return result.fetchone() is not None

    async def complete_session(
        self, db: AsyncSession, session_id: str, expense_id: str, finalized_by: str
    ) -> None:
        await db.execute(
            _COMPLETE_SESSION_SQL,
            {"session_id": session_id, "expense_id": expense_id, "finalized_by": finalized_by},
        )

    async def reopen_session(self, db: AsyncSession, session_id: str, member_id: str) -> None:
        await db.execute(_REOPEN_SESSION_SQL, {"session_id": session_id, "member_id": member_id})

    async def delete_session(self, db: AsyncSession, session_id: str) -> None:
        await db.execute(_DELETE_SESSION_SQL, {"session_id": session_id})
