"""002: create users, groups, group_members, placeholder_users

These tables belong to the identity / group-administration collaborators;
only the columns the accounting core reads are created here.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(255)    NOT NULL,
            email           VARCHAR(255)    NOT NULL,
            image           TEXT,
            payment_info    TEXT,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email UNIQUE (email)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE groups (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            name            VARCHAR(255)    NOT NULL,
            created_by      VARCHAR(64)     NOT NULL REFERENCES users (id),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_groups_updated_at
            BEFORE UPDATE ON groups
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE group_members (
            group_id        VARCHAR(64)     NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            user_id         VARCHAR(64)     NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            role            VARCHAR(20)     NOT NULL DEFAULT 'member',
            joined_at       TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (group_id, user_id),
            CONSTRAINT ck_group_members_role CHECK (role IN ('admin', 'member'))
        );
    """)
    op.execute("CREATE INDEX idx_group_members_user ON group_members (user_id);")

    op.execute("""
        CREATE TABLE placeholder_users (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            group_id        VARCHAR(64)     NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            name            VARCHAR(255)    NOT NULL,
            created_by      VARCHAR(64)     NOT NULL REFERENCES users (id),
            claimed_by      VARCHAR(64)     REFERENCES users (id),
            claimed_at      TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE INDEX idx_placeholder_users_unclaimed
        ON placeholder_users (group_id, created_at)
        WHERE claimed_by IS NULL;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS placeholder_users CASCADE;")
    op.execute("DROP TABLE IF EXISTS group_members CASCADE;")
    op.execute("DROP TABLE IF EXISTS groups CASCADE;")
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
