"""002: create teams and players tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE teams (
            id              INTEGER         PRIMARY KEY,
            name            VARCHAR(128)    NOT NULL,
            short_name      VARCHAR(8)      NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TABLE players (
            id              INTEGER         PRIMARY KEY,
            first_name      VARCHAR(128)    NOT NULL,
            second_name     VARCHAR(128)    NOT NULL,
            web_name        VARCHAR(128)    NOT NULL,
            position        VARCHAR(3)      NOT NULL,
            list_price      INTEGER         NOT NULL,
            team_id         INTEGER         REFERENCES teams (id),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_players_position      CHECK (position IN ('GK', 'DEF', 'MID', 'FWD')),
            CONSTRAINT ck_players_list_price    CHECK (list_price >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_players_sequence
            ON players (position, list_price DESC, first_name, second_name, id);
    """)
    for table in ("teams", "players"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
        """)
    op.execute(
        "COMMENT ON TABLE players IS "
        "'Player catalog; list_price in half-units, ownership lives in squad_players';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS players CASCADE;")
    op.execute("DROP TABLE IF EXISTS teams CASCADE;")
