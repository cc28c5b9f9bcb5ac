"""AuctionRepository: concrete implementation of AuctionRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Lot and auction rows are locked with SELECT ... FOR UPDATE by the engine
before any budget or squad check runs against them.
"""

from collections.abc import Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fa_auction.domain.models import Auction, AuctionLot, Bid, SequencedLot

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_AUCTION_COLUMNS = "id, status, phase, current_lot_id, created_at, closed_at"

_GET_OPEN_AUCTION_SQL = text(
    f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE status = 'OPEN' LIMIT 1"
)

_GET_OPEN_AUCTION_FOR_UPDATE_SQL = text(
    f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE status = 'OPEN' LIMIT 1 FOR UPDATE"
)

_GET_AUCTION_SQL = text(f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE id = :auction_id")

_GET_AUCTION_FOR_UPDATE_SQL = text(
    f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE id = :auction_id FOR UPDATE"
)

_CREATE_AUCTION_SQL = text(f"""
    INSERT INTO auctions (id, status, phase)
    VALUES (:id, 'OPEN', :phase)
    RETURNING {_AUCTION_COLUMNS}
""")

_SET_STATUS_SQL = text("""
    UPDATE auctions
    SET status = :status,
        closed_at = CASE WHEN :status = 'CLOSED' THEN NOW() ELSE NULL END
    WHERE id = :auction_id
""")

_SET_CURRENT_LOT_SQL = text("""
    UPDATE auctions SET current_lot_id = :lot_id WHERE id = :auction_id
""")

_INSERT_LOT_SQL = text("""
    INSERT INTO auction_lots (
        id, auction_id, player_id, source, squad_phase,
        is_sold, sold_price, winner_id, resolved_at
    ) VALUES (
        :id, :auction_id, :player_id, :source, :squad_phase,
        :is_sold, :sold_price, :winner_id,
        CASE WHEN :is_sold THEN NOW() ELSE NULL END
    )
""")

_LOT_COLUMNS = """
    id, auction_id, player_id, source, squad_phase,
    is_sold, sold_price, winner_id, resolved_at
"""

_GET_LOT_SQL = text(f"SELECT {_LOT_COLUMNS} FROM auction_lots WHERE id = :lot_id")

_GET_LOT_FOR_UPDATE_SQL = text(
    f"SELECT {_LOT_COLUMNS} FROM auction_lots WHERE id = :lot_id FOR UPDATE"
)

# Same key as the in-process sequencer; the service re-sorts in Python.
_LIST_SEQUENCED_LOTS_SQL = text("""
    SELECT l.id, l.auction_id, l.player_id, l.is_sold, l.sold_price, l.winner_id,
           p.position, p.list_price, p.first_name, p.second_name, p.web_name,
           t.short_name AS team_short_name,
           m.username AS winner_username
    FROM auction_lots l
    JOIN players p ON p.id = l.player_id
    LEFT JOIN teams t ON t.id = p.team_id
    LEFT JOIN managers m ON m.id = l.winner_id
    WHERE l.auction_id = :auction_id AND l.source = 'AUCTION'
    ORDER BY CASE p.position
                 WHEN 'GK' THEN 1 WHEN 'DEF' THEN 2 WHEN 'MID' THEN 3 ELSE 4
             END,
             p.list_price DESC, p.first_name, p.second_name, p.id
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE auction_lots
    SET is_sold = TRUE, sold_price = :price, winner_id = :winner_id, resolved_at = NOW()
    WHERE id = :lot_id
""")

_CLEAR_RESOLUTION_SQL = text("""
    UPDATE auction_lots
    SET is_sold = FALSE, sold_price = NULL, winner_id = NULL, resolved_at = NULL
    WHERE id = :lot_id
""")

_DELETE_ALLOCATION_LOTS_SQL = text("""
    DELETE FROM auction_lots
    WHERE auction_id = :auction_id
      AND winner_id = :manager_id
      AND squad_phase = :squad_phase
      AND source = 'ALLOCATION'
""")

_LIST_SOLD_LOTS_SQL = text(f"""
    SELECT {_LOT_COLUMNS} FROM auction_lots
    WHERE auction_id = :auction_id AND is_sold = TRUE AND winner_id IS NOT NULL
    ORDER BY source, id
""")

# Any auction: an allocation in an earlier auction still backs the squad row
_HAS_ALLOCATION_LOT_SQL = text("""
    SELECT 1 FROM auction_lots
    WHERE winner_id = :manager_id
      AND squad_phase = :squad_phase
      AND player_id = :player_id
      AND source = 'ALLOCATION'
      AND is_sold = TRUE
    LIMIT 1
""")

_GET_LEADING_BID_SQL = text("""
    SELECT b.id, b.lot_id, b.manager_id, b.amount, b.created_at, m.username
    FROM bids b JOIN managers m ON m.id = b.manager_id
    WHERE b.lot_id = :lot_id
    ORDER BY b.amount DESC, b.created_at ASC
    LIMIT 1
""")

_INSERT_BID_SQL = text("""
    INSERT INTO bids (id, lot_id, manager_id, amount)
    VALUES (:id, :lot_id, :manager_id, :amount)
""")

_DELETE_BIDS_SQL = text("DELETE FROM bids WHERE lot_id = :lot_id")

_LIST_BIDS_SQL = text("""
    SELECT b.id, b.lot_id, b.manager_id, b.amount, b.created_at, m.username
    FROM bids b
    JOIN auction_lots l ON l.id = b.lot_id
    JOIN managers m ON m.id = b.manager_id
    WHERE l.auction_id = :auction_id
    ORDER BY b.lot_id, b.amount DESC
""")

_SUM_SPENT_SQL = text("""
    SELECT COALESCE(SUM(sold_price), 0)
    FROM auction_lots
    WHERE auction_id = :auction_id AND winner_id = :manager_id AND is_sold = TRUE
""")

_SPENT_BY_MANAGER_SQL = text("""
    SELECT winner_id, COALESCE(SUM(sold_price), 0) AS spent
    FROM auction_lots
    WHERE auction_id = :auction_id AND is_sold = TRUE AND winner_id IS NOT NULL
    GROUP BY winner_id
""")

_DELETE_ALL_BIDS_SQL = text("DELETE FROM bids")
_DELETE_ALL_LOTS_SQL = text("DELETE FROM auction_lots")
_DELETE_ALL_AUCTIONS_SQL = text("DELETE FROM auctions")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_auction(row: object) -> Auction:
    return Auction(
        id=row.id,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        phase=row.phase,  # type: ignore[attr-defined]
        current_lot_id=row.current_lot_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        closed_at=row.closed_at,  # type: ignore[attr-defined]
    )


def _row_to_lot(row: object) -> AuctionLot:
    winner = row.winner_id  # type: ignore[attr-defined]
    return AuctionLot(
        id=row.id,  # type: ignore[attr-defined]
        auction_id=row.auction_id,  # type: ignore[attr-defined]
        player_id=row.player_id,  # type: ignore[attr-defined]
        source=row.source,  # type: ignore[attr-defined]
        squad_phase=row.squad_phase,  # type: ignore[attr-defined]
        is_sold=row.is_sold,  # type: ignore[attr-defined]
        sold_price=row.sold_price,  # type: ignore[attr-defined]
        winner_id=str(winner) if winner is not None else None,
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
    )


def _row_to_sequenced_lot(row: object) -> SequencedLot:
    winner = row.winner_id  # type: ignore[attr-defined]
    return SequencedLot(
        id=row.id,  # type: ignore[attr-defined]
        auction_id=row.auction_id,  # type: ignore[attr-defined]
        player_id=row.player_id,  # type: ignore[attr-defined]
        position=row.position,  # type: ignore[attr-defined]
        list_price=row.list_price,  # type: ignore[attr-defined]
        first_name=row.first_name,  # type: ignore[attr-defined]
        second_name=row.second_name,  # type: ignore[attr-defined]
        web_name=row.web_name,  # type: ignore[attr-defined]
        is_sold=row.is_sold,  # type: ignore[attr-defined]
        sold_price=row.sold_price,  # type: ignore[attr-defined]
        winner_id=str(winner) if winner is not None else None,
        winner_username=row.winner_username,  # type: ignore[attr-defined]
        team_short_name=row.team_short_name,  # type: ignore[attr-defined]
    )


def _row_to_bid(row: object) -> Bid:
    return Bid(
        id=row.id,  # type: ignore[attr-defined]
        lot_id=row.lot_id,  # type: ignore[attr-defined]
        manager_id=str(row.manager_id),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        manager_username=row.username,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuctionRepository:
    """Concrete repository over auctions, lots and bids."""

    def __init__(self, chunk_size: int | None = None) -> None:
        self._chunk_size = chunk_size or settings.LOT_INSERT_CHUNK_SIZE

    # --- Auctions ---

    async def get_open_auction(
        self, db: AsyncSession, for_update: bool = False
    ) -> Auction | None:
        sql = _GET_OPEN_AUCTION_FOR_UPDATE_SQL if for_update else _GET_OPEN_AUCTION_SQL
        row = (await db.execute(sql)).fetchone()
        return _row_to_auction(row) if row else None

    async def get_auction(
        self, db: AsyncSession, auction_id: str, for_update: bool = False
    ) -> Auction | None:
        sql = _GET_AUCTION_FOR_UPDATE_SQL if for_update else _GET_AUCTION_SQL
        row = (await db.execute(sql, {"auction_id": auction_id})).fetchone()
        return _row_to_auction(row) if row else None

    async def create_auction(
        self, db: AsyncSession, auction_id: str, phase: int
    ) -> Auction:
        row = (
            await db.execute(_CREATE_AUCTION_SQL, {"id": auction_id, "phase": phase})
        ).fetchone()
        return _row_to_auction(row)

    async def set_status(self, db: AsyncSession, auction_id: str, status: str) -> None:
        await db.execute(_SET_STATUS_SQL, {"auction_id": auction_id, "status": status})

    async def set_current_lot(
        self, db: AsyncSession, auction_id: str, lot_id: str | None
    ) -> None:
        await db.execute(_SET_CURRENT_LOT_SQL, {"auction_id": auction_id, "lot_id": lot_id})

    # --- Lots ---

    async def insert_lots(self, db: AsyncSession, lots: Sequence[AuctionLot]) -> int:
        """Insert lots in bounded chunks (executemany per chunk)."""
        for start in range(0, len(lots), self._chunk_size):
            chunk = lots[start:start + self._chunk_size]
            await db.execute(
                _INSERT_LOT_SQL,
                [
                    {
                        "id": lot.id,
                        "auction_id": lot.auction_id,
                        "player_id": lot.player_id,
                        "source": lot.source,
                        "squad_phase": lot.squad_phase,
                        "is_sold": lot.is_sold,
                        "sold_price": lot.sold_price,
                        "winner_id": lot.winner_id,
                    }
                    for lot in chunk
                ],
            )
        return len(lots)

    async def get_lot(
        self, db: AsyncSession, lot_id: str, for_update: bool = False
    ) -> AuctionLot | None:
        sql = _GET_LOT_FOR_UPDATE_SQL if for_update else _GET_LOT_SQL
        row = (await db.execute(sql, {"lot_id": lot_id})).fetchone()
        return _row_to_lot(row) if row else None

    async def list_sequenced_lots(
        self, db: AsyncSession, auction_id: str
    ) -> list[SequencedLot]:
        rows = (
            await db.execute(_LIST_SEQUENCED_LOTS_SQL, {"auction_id": auction_id})
        ).fetchall()
        return [_row_to_sequenced_lot(r) for r in rows]

    async def mark_resolved(
        self, db: AsyncSession, lot_id: str, winner_id: str | None, price: int
    ) -> None:
        await db.execute(
            _MARK_RESOLVED_SQL, {"lot_id": lot_id, "winner_id": winner_id, "price": price}
        )

    async def clear_resolution(self, db: AsyncSession, lot_id: str) -> None:
        await db.execute(_CLEAR_RESOLUTION_SQL, {"lot_id": lot_id})

    async def list_sold_lots(self, db: AsyncSession, auction_id: str) -> list[AuctionLot]:
        rows = (
            await db.execute(_LIST_SOLD_LOTS_SQL, {"auction_id": auction_id})
        ).fetchall()
        return [_row_to_lot(r) for r in rows]

    async def delete_allocation_lots(
        self, db: AsyncSession, auction_id: str, manager_id: str, squad_phase: int
    ) -> int:
        result = await db.execute(
            _DELETE_ALLOCATION_LOTS_SQL,
            {"auction_id": auction_id, "manager_id": manager_id, "squad_phase": squad_phase},
        )
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def has_allocation_lot(
        self, db: AsyncSession, manager_id: str, squad_phase: int, player_id: int
    ) -> bool:
        row = (
            await db.execute(
                _HAS_ALLOCATION_LOT_SQL,
                {"manager_id": manager_id, "squad_phase": squad_phase, "player_id": player_id},
            )
        ).fetchone()
        return row is not None

    # --- Bids ---

    async def get_leading_bid(self, db: AsyncSession, lot_id: str) -> Bid | None:
        row = (await db.execute(_GET_LEADING_BID_SQL, {"lot_id": lot_id})).fetchone()
        return _row_to_bid(row) if row else None

    async def insert_bid(self, db: AsyncSession, bid: Bid) -> None:
        await db.execute(
            _INSERT_BID_SQL,
            {
                "id": bid.id,
                "lot_id": bid.lot_id,
                "manager_id": bid.manager_id,
                "amount": bid.amount,
            },
        )

    async def delete_bids(self, db: AsyncSession, lot_id: str) -> int:
        result = await db.execute(_DELETE_BIDS_SQL, {"lot_id": lot_id})
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def list_bids(self, db: AsyncSession, auction_id: str) -> list[Bid]:
        rows = (await db.execute(_LIST_BIDS_SQL, {"auction_id": auction_id})).fetchall()
        return [_row_to_bid(r) for r in rows]

    # --- Spend ---

    async def sum_spent(self, db: AsyncSession, auction_id: str, manager_id: str) -> int:
        result = await db.execute(
            _SUM_SPENT_SQL, {"auction_id": auction_id, "manager_id": manager_id}
        )
        return int(result.scalar_one())

    async def spent_by_manager(self, db: AsyncSession, auction_id: str) -> dict[str, int]:
        rows = (
            await db.execute(_SPENT_BY_MANAGER_SQL, {"auction_id": auction_id})
        ).fetchall()
        return {str(r.winner_id): int(r.spent) for r in rows}

    async def reset_all(self, db: AsyncSession) -> None:
        await db.execute(_DELETE_ALL_BIDS_SQL)
        await db.execute(_DELETE_ALL_LOTS_SQL)
        await db.execute(_DELETE_ALL_AUCTIONS_SQL)
