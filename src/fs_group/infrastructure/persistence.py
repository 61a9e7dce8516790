"""GroupDirectoryRepository — concrete implementation of GroupDirectoryProtocol.

All queries use raw text() SQL (no ORM).
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.enums import ParticipantKind
from src.fs_common.participants import ParticipantRef
from src.fs_group.domain.models import Roster, RosterEntry

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_IS_MEMBER_SQL = text("""
    SELECT 1
    FROM group_members
    WHERE group_id = :group_id AND user_id = :member_id
    LIMIT 1
""")

_LIST_MEMBERS_SQL = text("""
    SELECT u.id, u.name, u.email, u.image, u.payment_info
    FROM group_members gm
    JOIN users u ON u.id = gm.user_id
    WHERE gm.group_id = :group_id
    ORDER BY gm.joined_at, u.id
""")

_LIST_UNCLAIMED_PLACEHOLDERS_SQL = text("""
    SELECT id, name
    FROM placeholder_users
    WHERE group_id = :group_id AND claimed_by IS NULL
    ORDER BY created_at, id
""")

# ---------------------------------------------------------------------------
# SQL: placeholder claim (single transaction, caller commits)
# ---------------------------------------------------------------------------

_MARK_PLACEHOLDER_CLAIMED_SQL = text("""
    UPDATE placeholder_users
    SET claimed_by = :member_id, claimed_at = NOW()
    WHERE id = :placeholder_id AND group_id = :group_id AND claimed_by IS NULL
    RETURNING id
""")

_REWRITE_EXPENSE_PAYER_SQL = text("""
    UPDATE expenses
    SET paid_by_id = :member_id, paid_by_kind = 'member', updated_at = NOW()
    WHERE group_id = :group_id
      AND paid_by_id = :placeholder_id AND paid_by_kind = 'placeholder'
""")

_REWRITE_SHARES_SQL = text("""
    UPDATE expense_shares s
    SET participant_id = :member_id, participant_kind = 'member'
    FROM expenses e
    WHERE s.expense_id = e.id AND e.group_id = :group_id
      AND s.participant_id = :placeholder_id AND s.participant_kind = 'placeholder'
""")

# A member who already claimed the same item keeps their own claim row.
_DROP_DUPLICATE_CLAIMS_SQL = text("""
    DELETE FROM receipt_item_claims c
    USING receipt_items i, receipt_sessions rs
    WHERE c.receipt_item_id = i.id AND i.receipt_session_id = rs.id
      AND rs.group_id = :group_id
      AND c.participant_id = :placeholder_id AND c.participant_kind = 'placeholder'
      AND EXISTS (
          SELECT 1 FROM receipt_item_claims m
          WHERE m.receipt_item_id = c.receipt_item_id
            AND m.participant_id = :member_id AND m.participant_kind = 'member'
      )
""")

_REWRITE_CLAIMS_SQL = text("""
    UPDATE receipt_item_claims c
    SET participant_id = :member_id, participant_kind = 'member'
    FROM receipt_items i, receipt_sessions rs
    WHERE c.receipt_item_id = i.id AND i.receipt_session_id = rs.id
      AND rs.group_id = :group_id
      AND c.participant_id = :placeholder_id AND c.participant_kind = 'placeholder'
""")

_DROP_DUPLICATE_SESSION_PARTICIPANTS_SQL = text("""
    DELETE FROM receipt_session_participants p
    USING receipt_sessions rs
    WHERE p.receipt_session_id = rs.id AND rs.group_id = :group_id
      AND p.participant_id = :placeholder_id AND p.participant_kind = 'placeholder'
      AND EXISTS (
          SELECT 1 FROM receipt_session_participants m
          WHERE m.receipt_session_id = p.receipt_session_id
            AND m.participant_id = :member_id AND m.participant_kind = 'member'
      )
""")

_REWRITE_SESSION_PARTICIPANTS_SQL = text("""
    UPDATE receipt_session_participants p
    SET participant_id = :member_id, participant_kind = 'member'
    FROM receipt_sessions rs
    WHERE p.receipt_session_id = rs.id AND rs.group_id = :group_id
      AND p.participant_id = :placeholder_id AND p.participant_kind = 'placeholder'
""")

_REWRITE_SETTLEMENT_FROM_SQL = text("""
    UPDATE settlement_records
    SET from_id = :member_id, from_kind = 'member'
    WHERE group_id = :group_id
      AND from_id = :placeholder_id AND from_kind = 'placeholder'
""")

_REWRITE_SETTLEMENT_TO_SQL = text("""
    UPDATE settlement_records
    SET to_id = :member_id, to_kind = 'member'
    WHERE group_id = :group_id
      AND to_id = :placeholder_id AND to_kind = 'placeholder'
""")

_REWRITE_STATEMENTS = (
    _REWRITE_EXPENSE_PAYER_SQL,
    _REWRITE_SHARES_SQL,
    _DROP_DUPLICATE_CLAIMS_SQL,
    _REWRITE_CLAIMS_SQL,
    _DROP_DUPLICATE_SESSION_PARTICIPANTS_SQL,
    _REWRITE_SESSION_PARTICIPANTS_SQL,
    _REWRITE_SETTLEMENT_FROM_SQL,
    _REWRITE_SETTLEMENT_TO_SQL,
)


class GroupDirectoryRepository:
    """Concrete repository — reads are plain SELECTs, the rewrite is caller-transacted."""

    async def is_member(self, db: AsyncSession, group_id: str, member_id: str) -> bool:
        result = await db.execute(
            _IS_MEMBER_SQL, {"group_id": group_id, "member_id": member_id}
        )
        return result.fetchone() is not None

    async def get_roster(self, db: AsyncSession, group_id: str) -> Roster:
        members = (
            await db.execute(_LIST_MEMBERS_SQL, {"group_id": group_id})
        ).fetchall()
        placeholders = (
            await db.execute(_LIST_UNCLAIMED_PLACEHOLDERS_SQL, {"group_id": group_id})
        ).fetchall()

        entries = [
            RosterEntry(
                ref=ParticipantRef(ParticipantKind.MEMBER, str(row.id)),
                name=row.name,
                email=row.email,
                image=row.image,
                payment_info=row.payment_info,
            )
            for row in members
        ]
        entries.extend(
            RosterEntry(
                ref=ParticipantRef(ParticipantKind.PLACEHOLDER, str(row.id)),
                name=row.name,
            )
            for row in placeholders
        )
        return Roster(group_id=group_id, entries=entries)

    async def reassign_placeholder(
        self, db: AsyncSession, group_id: str, placeholder_id: str, member_id: str
    ) -> bool:
        """Mark the placeholder claimed and rewrite its history to the member.

        Returns False (and touches nothing) when the placeholder does not
        exist in this group or was already claimed.
        """
        params = {
            "group_id": group_id,
            "placeholder_id": placeholder_id,
            "member_id": member_id,
        }
        claimed = (await db.execute(_MARK_PLACEHOLDER_CLAIMED_SQL, params)).fetchone()
        if claimed is None:
            return False
        for stmt in _REWRITE_STATEMENTS:
            await db.execute(stmt, params)
        return True
