"""003: create auctions, auction_lots and bids tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auctions (
            id              VARCHAR(64)     PRIMARY KEY,
            status          VARCHAR(10)     NOT NULL DEFAULT 'OPEN',
            phase           SMALLINT        NOT NULL DEFAULT 1,
            current_lot_id  VARCHAR(64),
            closed_at       TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_auctions_status   CHECK (status IN ('OPEN', 'CLOSED')),
            CONSTRAINT ck_auctions_phase    CHECK (phase BETWEEN 1 AND 4)
        );
    """)
    # At most one OPEN auction system-wide
    op.execute("""
        CREATE UNIQUE INDEX uq_auctions_single_open
            ON auctions (status) WHERE status = 'OPEN';
    """)
    op.execute("""
        CREATE TABLE auction_lots (
            id              VARCHAR(64)     PRIMARY KEY,
            auction_id      VARCHAR(64)     NOT NULL REFERENCES auctions (id) ON DELETE CASCADE,
            player_id       INTEGER         NOT NULL REFERENCES players (id),
            source          VARCHAR(10)     NOT NULL DEFAULT 'AUCTION',
            squad_phase     SMALLINT        NOT NULL DEFAULT 1,
            is_sold         BOOLEAN         NOT NULL DEFAULT FALSE,
            sold_price      INTEGER,
            winner_id       UUID            REFERENCES managers (id),
            resolved_at     TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_lots_source       CHECK (source IN ('AUCTION', 'ALLOCATION')),
            CONSTRAINT ck_lots_squad_phase  CHECK (squad_phase BETWEEN 1 AND 4),
            CONSTRAINT ck_lots_sold_price   CHECK (sold_price IS NULL OR sold_price >= 0),
            CONSTRAINT ck_lots_winner_sold  CHECK (winner_id IS NULL OR is_sold)
        );
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_lots_auction_player
            ON auction_lots (auction_id, player_id) WHERE source = 'AUCTION';
    """)
    op.execute("CREATE INDEX idx_lots_winner ON auction_lots (auction_id, winner_id);")
    op.execute("""
        CREATE TABLE bids (
            id              VARCHAR(64)     PRIMARY KEY,
            lot_id          VARCHAR(64)     NOT NULL REFERENCES auction_lots (id) ON DELETE CASCADE,
            manager_id      UUID            NOT NULL REFERENCES managers (id),
            amount          INTEGER         NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_amount_gt_0  CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_bids_lot_amount ON bids (lot_id, amount DESC);")
    op.execute("""
        CREATE TRIGGER trg_auctions_updated_at
            BEFORE UPDATE ON auctions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
    op.execute("DROP TABLE IF EXISTS auction_lots CASCADE;")
    op.execute("DROP TABLE IF EXISTS auctions CASCADE;")
