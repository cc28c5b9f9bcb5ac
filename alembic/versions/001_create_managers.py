"""001: create common functions and managers table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE managers (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            username        VARCHAR(64)     NOT NULL,
            display_name    VARCHAR(128),
            password_hash   VARCHAR(255)    NOT NULL,
            is_admin        BOOLEAN         NOT NULL DEFAULT FALSE,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            starting_budget BIGINT          NOT NULL DEFAULT 150000,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_managers_username         UNIQUE (username),
            CONSTRAINT ck_managers_username_len     CHECK (LENGTH(username) >= 3),
            CONSTRAINT ck_managers_budget_gte_0     CHECK (starting_budget >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_managers_updated_at
            BEFORE UPDATE ON managers
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE managers IS "
        "'League managers; starting_budget in thousandths, remaining budget is always derived';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS managers CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
