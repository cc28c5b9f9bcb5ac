"""LeagueRepository: concrete implementation of LeagueRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Ownership is never stored on players: the owner of a player in phase P is
whoever's phase-P squad holds a squad_players row for it.
"""

from collections.abc import Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_league.domain.models import (
    Manager,
    PhaseOwner,
    Player,
    Squad,
    SquadPlayer,
    SquadSlot,
    Team,
)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_MANAGER_COLUMNS = "id, username, display_name, is_admin, starting_budget, created_at"

_GET_MANAGER_SQL = text(f"SELECT {_MANAGER_COLUMNS} FROM managers WHERE id = :manager_id")

_GET_MANAGER_FOR_UPDATE_SQL = text(
    f"SELECT {_MANAGER_COLUMNS} FROM managers WHERE id = :manager_id FOR UPDATE"
)

_LIST_MANAGERS_SQL = text(f"SELECT {_MANAGER_COLUMNS} FROM managers ORDER BY username")

_ADD_BUDGET_SQL = text("""
    UPDATE managers
    SET starting_budget = starting_budget + :amount
    WHERE is_admin = FALSE
""")

_RESET_BUDGETS_SQL = text("""
    UPDATE managers
    SET starting_budget = :amount
    WHERE is_admin = FALSE
""")

_PLAYER_COLUMNS = """
    p.id, p.first_name, p.second_name, p.web_name, p.position, p.list_price,
    p.team_id, t.short_name AS team_short_name
"""

_GET_PLAYER_SQL = text(f"""
    SELECT {_PLAYER_COLUMNS}
    FROM players p LEFT JOIN teams t ON t.id = p.team_id
    WHERE p.id = :player_id
""")

_LIST_PLAYERS_SQL = text(f"""
    SELECT {_PLAYER_COLUMNS}
    FROM players p LEFT JOIN teams t ON t.id = p.team_id
    ORDER BY p.id
""")

_GET_PLAYERS_SQL = text(f"""
    SELECT {_PLAYER_COLUMNS}
    FROM players p LEFT JOIN teams t ON t.id = p.team_id
    WHERE p.id = ANY(:ids)
""")

_UPSERT_TEAM_SQL = text("""
    INSERT INTO teams (id, name, short_name)
    VALUES (:id, :name, :short_name)
    ON CONFLICT (id) DO UPDATE
    SET name = EXCLUDED.name, short_name = EXCLUDED.short_name
""")

# Catalog sync overwrites descriptive fields only; ownership is not a column here.
_UPSERT_PLAYER_SQL = text("""
    INSERT INTO players (id, first_name, second_name, web_name, position, list_price, team_id)
    VALUES (:id, :first_name, :second_name, :web_name, :position, :list_price, :team_id)
    ON CONFLICT (id) DO UPDATE
    SET first_name = EXCLUDED.first_name,
        second_name = EXCLUDED.second_name,
        web_name = EXCLUDED.web_name,
        position = EXCLUDED.position,
        list_price = EXCLUDED.list_price,
        team_id = EXCLUDED.team_id
""")

_GET_SQUAD_SQL = text("""
    SELECT id, manager_id, phase, total_points
    FROM squads
    WHERE manager_id = :manager_id AND phase = :phase
""")

_CREATE_SQUAD_SQL = text("""
    INSERT INTO squads (manager_id, phase)
    VALUES (:manager_id, :phase)
    ON CONFLICT (manager_id, phase) DO UPDATE SET phase = EXCLUDED.phase
    RETURNING id, manager_id, phase, total_points
""")

# lot_sold_price: latest sold lot this manager won for the player (fee fallback)
_LIST_SQUAD_PLAYERS_SQL = text("""
    SELECT sp.squad_id, sp.player_id, sp.fee_paid,
           p.web_name, p.position, t.short_name AS team_short_name,
           (
               SELECT l.sold_price
               FROM auction_lots l
               WHERE l.player_id = sp.player_id
                 AND l.winner_id = s.manager_id
                 AND l.is_sold = TRUE
               ORDER BY l.resolved_at DESC NULLS LAST
               LIMIT 1
           ) AS lot_sold_price
    FROM squad_players sp
    JOIN squads s ON s.id = sp.squad_id
    JOIN players p ON p.id = sp.player_id
    LEFT JOIN teams t ON t.id = p.team_id
    WHERE s.manager_id = :manager_id AND s.phase = :phase
    ORDER BY CASE p.position
                 WHEN 'GK' THEN 1 WHEN 'DEF' THEN 2 WHEN 'MID' THEN 3 ELSE 4
             END,
             p.web_name
""")

_SQUAD_POSITIONS_SQL = text("""
    SELECT p.position
    FROM squad_players sp
    JOIN squads s ON s.id = sp.squad_id
    JOIN players p ON p.id = sp.player_id
    WHERE s.manager_id = :manager_id AND s.phase = :phase
""")

_ADD_SQUAD_PLAYER_SQL = text("""
    INSERT INTO squad_players (squad_id, player_id, fee_paid)
    VALUES (:squad_id, :player_id, :fee_paid)
""")

_REMOVE_SQUAD_PLAYER_SQL = text("""
    DELETE FROM squad_players sp
    USING squads s
    WHERE s.id = sp.squad_id
      AND s.manager_id = :manager_id AND s.phase = :phase
      AND sp.player_id = :player_id
    RETURNING sp.player_id
""")

_CLEAR_SQUAD_SQL = text("""
    DELETE FROM squad_players sp
    USING squads s
    WHERE s.id = sp.squad_id
      AND s.manager_id = :manager_id AND s.phase = :phase
    RETURNING sp.player_id
""")

_FIND_PHASE_OWNERS_SQL = text("""
    SELECT sp.player_id, s.phase, s.manager_id, m.username
    FROM squad_players sp
    JOIN squads s ON s.id = sp.squad_id
    JOIN managers m ON m.id = s.manager_id
    WHERE s.phase = :phase AND sp.player_id = ANY(:ids)
""")

_LIST_SQUAD_SLOTS_SQL = text("""
    SELECT s.manager_id, m.username, s.phase, sp.player_id, p.position
    FROM squad_players sp
    JOIN squads s ON s.id = sp.squad_id
    JOIN managers m ON m.id = s.manager_id
    JOIN players p ON p.id = sp.player_id
    ORDER BY m.username, s.phase
""")

_DELETE_SQUAD_PLAYERS_SQL = text("DELETE FROM squad_players")
_DELETE_SQUADS_SQL = text("DELETE FROM squads")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_manager(row: object) -> Manager:
    return Manager(
        id=str(row.id),  # type: ignore[attr-defined]
        username=row.username,  # type: ignore[attr-defined]
        display_name=row.display_name,  # type: ignore[attr-defined]
        is_admin=row.is_admin,  # type: ignore[attr-defined]
        starting_budget=row.starting_budget,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_player(row: object) -> Player:
    return Player(
        id=row.id,  # type: ignore[attr-defined]
        first_name=row.first_name,  # type: ignore[attr-defined]
        second_name=row.second_name,  # type: ignore[attr-defined]
        web_name=row.web_name,  # type: ignore[attr-defined]
        position=row.position,  # type: ignore[attr-defined]
        list_price=row.list_price,  # type: ignore[attr-defined]
        team_id=row.team_id,  # type: ignore[attr-defined]
        team_short_name=row.team_short_name,  # type: ignore[attr-defined]
    )


def _row_to_squad(row: object) -> Squad:
    return Squad(
        id=str(row.id),  # type: ignore[attr-defined]
        manager_id=str(row.manager_id),  # type: ignore[attr-defined]
        phase=row.phase,  # type: ignore[attr-defined]
        total_points=row.total_points,  # type: ignore[attr-defined]
    )


def _row_to_squad_player(row: object) -> SquadPlayer:
    return SquadPlayer(
        squad_id=str(row.squad_id),  # type: ignore[attr-defined]
        player_id=row.player_id,  # type: ignore[attr-defined]
        web_name=row.web_name,  # type: ignore[attr-defined]
        position=row.position,  # type: ignore[attr-defined]
        fee_paid=row.fee_paid,  # type: ignore[attr-defined]
        team_short_name=row.team_short_name,  # type: ignore[attr-defined]
        lot_sold_price=row.lot_sold_price,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class LeagueRepository:
    """Concrete repository over managers, catalog and squads."""

    # --- Managers ---

    async def get_manager(
        self, db: AsyncSession, manager_id: str, for_update: bool = False
    ) -> Manager | None:
        sql = _GET_MANAGER_FOR_UPDATE_SQL if for_update else _GET_MANAGER_SQL
        row = (await db.execute(sql, {"manager_id": manager_id})).fetchone()
        return _row_to_manager(row) if row else None

    async def list_managers(self, db: AsyncSession) -> list[Manager]:
        rows = (await db.execute(_LIST_MANAGERS_SQL)).fetchall()
        return [_row_to_manager(r) for r in rows]

    async def add_budget_to_all(self, db: AsyncSession, amount: int) -> int:
        result = await db.execute(_ADD_BUDGET_SQL, {"amount": amount})
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def reset_budgets(self, db: AsyncSession, amount: int) -> int:
        result = await db.execute(_RESET_BUDGETS_SQL, {"amount": amount})
        return int(result.rowcount)  # type: ignore[attr-defined]

    # --- Catalog ---

    async def get_player(self, db: AsyncSession, player_id: int) -> Player | None:
        row = (await db.execute(_GET_PLAYER_SQL, {"player_id": player_id})).fetchone()
        return _row_to_player(row) if row else None

    async def list_players(self, db: AsyncSession) -> list[Player]:
        rows = (await db.execute(_LIST_PLAYERS_SQL)).fetchall()
        return [_row_to_player(r) for r in rows]

    async def get_players(
        self, db: AsyncSession, player_ids: Sequence[int]
    ) -> dict[int, Player]:
        if not player_ids:
            return {}
        rows = (await db.execute(_GET_PLAYERS_SQL, {"ids": list(player_ids)})).fetchall()
        return {r.id: _row_to_player(r) for r in rows}

    async def upsert_teams(self, db: AsyncSession, teams: Sequence[Team]) -> int:
        if not teams:
            return 0
        await db.execute(
            _UPSERT_TEAM_SQL,
            [{"id": t.id, "name": t.name, "short_name": t.short_name} for t in teams],
        )
        return len(teams)

    async def upsert_players(self, db: AsyncSession, players: Sequence[Player]) -> int:
        if not players:
            return 0
        await db.execute(
            _UPSERT_PLAYER_SQL,
            [
                {
                    "id": p.id,
                    "first_name": p.first_name,
                    "second_name": p.second_name,
                    "web_name": p.web_name,
                    "position": p.position,
                    "list_price": p.list_price,
                    "team_id": p.team_id,
                }
                for p in players
            ],
        )
        return len(players)

    # --- Squads ---

    async def get_squad(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> Squad | None:
        row = (
            await db.execute(_GET_SQUAD_SQL, {"manager_id": manager_id, "phase": phase})
        ).fetchone()
        return _row_to_squad(row) if row else None

    async def get_or_create_squad(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> Squad:
        existing = await self.get_squad(db, manager_id, phase)
        if existing is not None:
            return existing
        row = (
            await db.execute(_CREATE_SQUAD_SQL, {"manager_id": manager_id, "phase": phase})
        ).fetchone()
        return _row_to_squad(row)

    async def list_squad_players(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> list[SquadPlayer]:
        rows = (
            await db.execute(
                _LIST_SQUAD_PLAYERS_SQL, {"manager_id": manager_id, "phase": phase}
            )
        ).fetchall()
        return [_row_to_squad_player(r) for r in rows]

    async def squad_positions(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> list[str]:
        result = await db.execute(
            _SQUAD_POSITIONS_SQL, {"manager_id": manager_id, "phase": phase}
        )
        return list(result.scalars().all())

    async def add_squad_player(
        self, db: AsyncSession, squad_id: str, player_id: int, fee_paid: int
    ) -> None:
        await db.execute(
            _ADD_SQUAD_PLAYER_SQL,
            {"squad_id": squad_id, "player_id": player_id, "fee_paid": fee_paid},
        )

    async def remove_squad_player(
        self, db: AsyncSession, manager_id: str, phase: int, player_id: int
    ) -> bool:
        row = (
            await db.execute(
                _REMOVE_SQUAD_PLAYER_SQL,
                {"manager_id": manager_id, "phase": phase, "player_id": player_id},
            )
        ).fetchone()
        return row is not None

    async def clear_squad(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> list[int]:
        result = await db.execute(
            _CLEAR_SQUAD_SQL, {"manager_id": manager_id, "phase": phase}
        )
        return list(result.scalars().all())

    async def find_phase_owners(
        self, db: AsyncSession, player_ids: Sequence[int], phase: int
    ) -> dict[int, PhaseOwner]:
        if not player_ids:
            return {}
        rows = (
            await db.execute(
                _FIND_PHASE_OWNERS_SQL, {"ids": list(player_ids), "phase": phase}
            )
        ).fetchall()
        return {
            r.player_id: PhaseOwner(
                player_id=r.player_id,
                phase=r.phase,
                manager_id=str(r.manager_id),
                username=r.username,
            )
            for r in rows
        }

    async def list_squad_slots(self, db: AsyncSession) -> list[SquadSlot]:
        rows = (await db.execute(_LIST_SQUAD_SLOTS_SQL)).fetchall()
        return [
            SquadSlot(
                manager_id=str(r.manager_id),
                username=r.username,
                phase=r.phase,
                player_id=r.player_id,
                position=r.position,
            )
            for r in rows
        ]

    async def reset_squads(self, db: AsyncSession) -> None:
        await db.execute(_DELETE_SQUAD_PLAYERS_SQL)
        await db.execute(_DELETE_SQUADS_SQL)
