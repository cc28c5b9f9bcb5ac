# tests/unit/test_league_persistence.py
"""Unit tests for LeagueRepository using MagicMock AsyncSession."""
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.fa_league.domain.models import Player, Team
from src.fa_league.infrastructure.persistence import LeagueRepository


def _result_with(row=None, rows=None, scalars=None, rowcount=0):
    result = MagicMock()
    result.fetchone.return_value = row
    result.fetchall.return_value = rows or []
    result.scalars.return_value.all.return_value = scalars or []
    result.rowcount = rowcount
    return result


@pytest.fixture
def db():
    session = MagicMock()
    session.execute = AsyncMock()
    return session


class TestManagers:
    async def test_get_manager_maps_uuid(self, db) -> None:
        manager_id = uuid.uuid4()
        row = MagicMock(id=manager_id, username="ManagerA", display_name=None,
                        is_admin=False, starting_budget=150_000, created_at=None)
        db.execute.return_value = _result_with(row=row)

        manager = await LeagueRepository().get_manager(db, str(manager_id), for_update=True)

        assert manager.id == str(manager_id)
        assert manager.starting_budget == 150_000
        assert "FOR UPDATE" in str(db.execute.call_args.args[0])

    async def test_add_budget_skips_admins(self, db) -> None:
        db.execute.return_value = _result_with(rowcount=4)
        assert await LeagueRepository().add_budget_to_all(db, 10_000) == 4
        assert "is_admin = FALSE" in str(db.execute.call_args.args[0])


class TestCatalog:
    async def test_get_players_empty_skips_query(self, db) -> None:
        assert await LeagueRepository().get_players(db, []) == {}
        db.execute.assert_not_awaited()

    async def test_upsert_players_batches_rows(self, db) -> None:
        players = [Player(id=i, first_name="A", second_name="B", web_name="B",
                          position="MID", list_price=10) for i in range(3)]
        assert await LeagueRepository().upsert_players(db, players) == 3
        assert len(db.execute.call_args.args[1]) == 3
        assert "ON CONFLICT (id) DO UPDATE" in str(db.execute.call_args.args[0])

    async def test_upsert_teams_empty(self, db) -> None:
        assert await LeagueRepository().upsert_teams(db, []) == 0
        db.execute.assert_not_awaited()

    async def test_upsert_teams(self, db) -> None:
        await LeagueRepository().upsert_teams(db, [Team(1, "Arsenal", "ARS")])
        assert db.execute.call_args.args[1] == [{"id": 1, "name": "Arsenal", "short_name": "ARS"}]


class TestSquads:
    async def test_get_or_create_returns_existing(self, db) -> None:
        row = MagicMock(id=uuid.uuid4(), manager_id=uuid.uuid4(), phase=1, total_points=0)
        db.execute.return_value = _result_with(row=row)

        squad = await LeagueRepository().get_or_create_squad(db, "m-1", 1)

        assert squad.phase == 1
        assert db.execute.await_count == 1

    async def test_get_or_create_inserts_when_missing(self, db) -> None:
        created = MagicMock(id=uuid.uuid4(), manager_id=uuid.uuid4(), phase=2, total_points=0)
        db.execute.side_effect = [_result_with(row=None), _result_with(row=created)]

        squad = await LeagueRepository().get_or_create_squad(db, "m-1", 2)

        assert squad.id == str(created.id)
        assert "INSERT INTO squads" in str(db.execute.call_args.args[0])

    async def test_clear_squad_returns_removed_ids(self, db) -> None:
        db.execute.return_value = _result_with(scalars=[3, 9])
        assert await LeagueRepository().clear_squad(db, "m-1", 2) == [3, 9]

    async def test_remove_squad_player_reports_miss(self, db) -> None:
        db.execute.return_value = _result_with(row=None)
        assert await LeagueRepository().remove_squad_player(db, "m-1", 1, 7) is False

    async def test_find_phase_owners(self, db) -> None:
        owner_id = uuid.uuid4()
        db.execute.return_value = _result_with(
            rows=[MagicMock(player_id=7, phase=1, manager_id=owner_id, username="ManagerA")]
        )

        owners = await LeagueRepository().find_phase_owners(db, [7, 8], 1)

        assert owners[7].manager_id == str(owner_id)
        assert 8 not in owners
        assert db.execute.call_args.args[1] == {"ids": [7, 8], "phase": 1}
