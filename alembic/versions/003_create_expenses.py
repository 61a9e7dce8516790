"""003: create expenses + expense_shares

Amounts are BIGINT cents. Payer and share participant are addressed by the
(id, kind) pair: member and placeholder ids live in different tables.
The share-sum == amount rule is enforced by the application, not here.

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE expenses (
            id                  VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            group_id            VARCHAR(64)     NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            description         VARCHAR(500)    NOT NULL,
            amount_cents        BIGINT          NOT NULL,
            paid_by_id          VARCHAR(64)     NOT NULL,
            paid_by_kind        VARCHAR(20)     NOT NULL,
            spent_at            TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            created_by          VARCHAR(64)     NOT NULL,
            receipt_session_id  VARCHAR(64),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_expenses_amount_gt_0 CHECK (amount_cents > 0),
            CONSTRAINT ck_expenses_paid_by_kind CHECK (paid_by_kind IN ('member', 'placeholder'))
        );
    """)
    op.execute("CREATE INDEX idx_expenses_group_time ON expenses (group_id, spent_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_expenses_updated_at
            BEFORE UPDATE ON expenses
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE expense_shares (
            id                  BIGSERIAL       PRIMARY KEY,
            expense_id          VARCHAR(64)     NOT NULL REFERENCES expenses (id) ON DELETE CASCADE,
            participant_id      VARCHAR(64)     NOT NULL,
            participant_kind    VARCHAR(20)     NOT NULL,
            amount_cents        BIGINT          NOT NULL,
            CONSTRAINT uq_expense_shares_participant
                UNIQUE (expense_id, participant_id, participant_kind),
            CONSTRAINT ck_expense_shares_kind CHECK (participant_kind IN ('member', 'placeholder'))
        );
    """)
    op.execute("CREATE INDEX idx_expense_shares_expense ON expense_shares (expense_id);")
    op.execute("COMMENT ON TABLE expense_shares IS 'Always replaced as a full set, never patched';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS expense_shares CASCADE;")
    op.execute("DROP TABLE IF EXISTS expenses CASCADE;")
