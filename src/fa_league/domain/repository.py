# src/fa_league/domain/repository.py
"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from collections.abc import Sequence
from typing import Protocol

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


class LeagueRepositoryProtocol(Protocol):
    # Managers
    async def get_manager(
        self, db: AsyncSession, manager_id: str, for_update: bool = False
    ) -> Manager | None: ...

    async def list_managers(self, db: AsyncSession) -> list[Manager]: ...

    async def add_budget_to_all(self, db: AsyncSession, amount: int) -> int: ...

    async def reset_budgets(self, db: AsyncSession, amount: int) -> int: ...

    # Catalog
    async def get_player(self, db: AsyncSession, player_id: int) -> Player | None: ...

    async def list_players(self, db: AsyncSession) -> list[Player]: ...

    async def get_players(
        self, db: AsyncSession, player_ids: Sequence[int]
    ) -> dict[int, Player]: ...

    async def upsert_teams(self, db: AsyncSession, teams: Sequence[Team]) -> int: ...

    async def upsert_players(self, db: AsyncSession, players: Sequence[Player]) -> int: ...

    # Squads
    async def get_squad(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> Squad | None: ...

    async def get_or_create_squad(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> Squad: ...

    async def list_squad_players(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> list[SquadPlayer]: ...

    async def squad_positions(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> list[str]: ...

    async def add_squad_player(
        self, db: AsyncSession, squad_id: str, player_id: int, fee_paid: int
    ) -> None: ...

    async def remove_squad_player(
        self, db: AsyncSession, manager_id: str, phase: int, player_id: int
    ) -> bool: ...

    async def clear_squad(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> list[int]: ...

    async def find_phase_owners(
        self, db: AsyncSession, player_ids: Sequence[int], phase: int
    ) -> dict[int, PhaseOwner]: ...

    async def list_squad_slots(self, db: AsyncSession) -> list[SquadSlot]: ...

    async def reset_squads(self, db: AsyncSession) -> None: ...
