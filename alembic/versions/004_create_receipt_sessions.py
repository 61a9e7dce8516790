"""004: create receipt_sessions, participants, items, claims

receipt_item_claims carries the UNIQUE (item, participant) constraint that
makes concurrent duplicate claims collapse (INSERT ... ON CONFLICT DO NOTHING).

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE receipt_sessions (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            group_id        VARCHAR(64)     NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            created_by      VARCHAR(64)     NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'claiming',
            merchant        VARCHAR(255)    NOT NULL,
            receipt_date    TIMESTAMPTZ,
            subtotal_cents  BIGINT          NOT NULL DEFAULT 0,
            tax_cents       BIGINT          NOT NULL DEFAULT 0,
            tip_cents       BIGINT          NOT NULL DEFAULT 0,
            total_cents     BIGINT          NOT NULL,
            expires_at      TIMESTAMPTZ     NOT NULL,
            expense_id      VARCHAR(64)     REFERENCES expenses (id) ON DELETE SET NULL,
            reopened_by     VARCHAR(64),
            reopened_at     TIMESTAMPTZ,
            finalized_by    VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_receipt_sessions_status CHECK (status IN ('claiming', 'completed')),
            CONSTRAINT ck_receipt_sessions_total_gt_0 CHECK (total_cents > 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_receipt_sessions_active
        ON receipt_sessions (group_id, created_at DESC)
        WHERE status = 'claiming';
    """)
    op.execute("""
        CREATE TRIGGER trg_receipt_sessions_updated_at
            BEFORE UPDATE ON receipt_sessions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE receipt_session_participants (
            receipt_session_id  VARCHAR(64)     NOT NULL
                REFERENCES receipt_sessions (id) ON DELETE CASCADE,
            participant_id      VARCHAR(64)     NOT NULL,
            participant_kind    VARCHAR(20)     NOT NULL,
            position            INT             NOT NULL,
            PRIMARY KEY (receipt_session_id, participant_id, participant_kind),
            CONSTRAINT ck_rsp_kind CHECK (participant_kind IN ('member', 'placeholder'))
        );
    """)

    op.execute("""
        CREATE TABLE receipt_items (
            id                  VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            receipt_session_id  VARCHAR(64)     NOT NULL
                REFERENCES receipt_sessions (id) ON DELETE CASCADE,
            name                VARCHAR(255)    NOT NULL,
            price_cents         BIGINT          NOT NULL,
            position            INT             NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_receipt_items_session ON receipt_items (receipt_session_id, position);")

    op.execute("""
        CREATE TABLE receipt_item_claims (
            id                  BIGSERIAL       PRIMARY KEY,
            receipt_item_id     VARCHAR(64)     NOT NULL
                REFERENCES receipt_items (id) ON DELETE CASCADE,
            participant_id      VARCHAR(64)     NOT NULL,
            participant_kind    VARCHAR(20)     NOT NULL,
            claimed_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_receipt_item_claims_participant
                UNIQUE (receipt_item_id, participant_id, participant_kind),
            CONSTRAINT ck_ric_kind CHECK (participant_kind IN ('member', 'placeholder'))
        );
    """)

    op.execute("""
        ALTER TABLE expenses
        ADD CONSTRAINT fk_expenses_receipt_session
        FOREIGN KEY (receipt_session_id) REFERENCES receipt_sessions (id) ON DELETE SET NULL;
    """)


def downgrade() -> None:
    op.execute("ALTER TABLE expenses DROP CONSTRAINT IF EXISTS fk_expenses_receipt_session;")
    op.execute("DROP TABLE IF EXISTS receipt_item_claims CASCADE;")
    op.execute("DROP TABLE IF EXISTS receipt_items CASCADE;")
    op.execute("DROP TABLE IF EXISTS receipt_session_participants CASCADE;")
    op.execute("DROP TABLE IF EXISTS receipt_sessions CASCADE;")
