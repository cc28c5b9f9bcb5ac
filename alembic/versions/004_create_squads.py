"""004: create squads and squad_players tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE squads (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            manager_id      UUID            NOT NULL REFERENCES managers (id) ON DELETE CASCADE,
            phase           SMALLINT        NOT NULL,
            total_points    INTEGER         NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_squads_manager_phase  UNIQUE (manager_id, phase),
            CONSTRAINT ck_squads_phase          CHECK (phase BETWEEN 1 AND 4)
        );
    """)
    op.execute("""
        CREATE TABLE squad_players (
            squad_id        UUID            NOT NULL REFERENCES squads (id) ON DELETE CASCADE,
            player_id       INTEGER         NOT NULL REFERENCES players (id),
            fee_paid        INTEGER         NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (squad_id, player_id),
            CONSTRAINT ck_squad_players_fee CHECK (fee_paid >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_squad_players_player ON squad_players (player_id);")
    op.execute("""
        CREATE TRIGGER trg_squads_updated_at
            BEFORE UPDATE ON squads
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE squad_players IS "
        "'Sole durable record of ownership; owner in phase P = squad_players JOIN squads';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS squad_players CASCADE;")
    op.execute("DROP TABLE IF EXISTS squads CASCADE;")
