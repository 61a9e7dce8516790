"""005: create settlement_records

One row per "mark paid". settlement_id is the optimizer suggestion's
deterministic hash; it repeats if the same debt recurs, so it is not unique.

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE settlement_records (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            group_id        VARCHAR(64)     NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            settlement_id   VARCHAR(64)     NOT NULL,
            from_id         VARCHAR(64)     NOT NULL,
            from_kind       VARCHAR(20)     NOT NULL,
            to_id           VARCHAR(64)     NOT NULL,
            to_kind         VARCHAR(20)     NOT NULL,
            amount_cents    BIGINT          NOT NULL,
            marked_by       VARCHAR(64)     NOT NULL,
            paid_at         TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_settlement_amount_gt_0 CHECK (amount_cents > 0),
            CONSTRAINT ck_settlement_from_kind CHECK (from_kind IN ('member', 'placeholder')),
            CONSTRAINT ck_settlement_to_kind CHECK (to_kind IN ('member', 'placeholder'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_settlement_records_lookup
        ON settlement_records (group_id, settlement_id, paid_at DESC);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS settlement_records CASCADE;")
