"""LeagueApplicationService: budget, squad and ownership views plus catalog upsert.

Views are read-only and go through retry_read (transient ledger failures are
retried). Catalog upsert commits or rolls back explicitly and is not retried.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_auction.infrastructure.persistence import AuctionRepository
from src.fa_common.database import retry_read
from src.fa_common.errors import ManagerNotFoundError, PlayerNotFoundError
from src.fa_league.application.schemas import (
    BudgetResponse,
    CatalogUpsertRequest,
    CatalogUpsertResponse,
    OwnerResponse,
    SquadResponse,
)
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_league.infrastructure.persistence import LeagueRepository
from src.fa_risk.rules.budget import load_budget

logger = logging.getLogger(__name__)


class LeagueApplicationService:
    def __init__(
        self,
        league: LeagueRepositoryProtocol | None = None,
        auctions: AuctionRepositoryProtocol | None = None,
    ) -> None:
        self._league: LeagueRepositoryProtocol = league or LeagueRepository()
        self._auctions: AuctionRepositoryProtocol = auctions or AuctionRepository()

    async def get_budget(self, db: AsyncSession, manager_id: str) -> BudgetResponse:
        async def _read() -> BudgetResponse:
            manager = await self._league.get_manager(db, manager_id)
            if manager is None:
                raise ManagerNotFoundError(manager_id)
            budget = await load_budget(manager, self._auctions, db)
            return BudgetResponse.from_budget(manager, budget)

        return await retry_read(db, _read)

    async def get_squad(
        self, db: AsyncSession, manager_id: str, phase: int
    ) -> SquadResponse:
        async def _read() -> SquadResponse:
            manager = await self._league.get_manager(db, manager_id)
            if manager is None:
                raise ManagerNotFoundError(manager_id)
            squad = await self._league.get_squad(db, manager_id, phase)
            rows = await self._league.list_squad_players(db, manager_id, phase)
            return SquadResponse.from_rows(manager, phase, squad, rows)

        return await retry_read(db, _read)

    async def get_owner(self, db: AsyncSession, player_id: int, phase: int) -> OwnerResponse:
        async def _read() -> OwnerResponse:
            if await self._league.get_player(db, player_id) is None:
                raise PlayerNotFoundError(player_id)
            owners = await self._league.find_phase_owners(db, [player_id], phase)
            return OwnerResponse.from_owner(player_id, phase, owners.get(player_id))

        return await retry_read(db, _read)

    async def upsert_catalog(
        self, db: AsyncSession, body: CatalogUpsertRequest
    ) -> CatalogUpsertResponse:
        try:
            teams = await self._league.upsert_teams(db, [t.to_domain() for t in body.teams])
            players = await self._league.upsert_players(
                db, [p.to_domain() for p in body.players]
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("catalog upserted: teams=%d players=%d", teams, players)
        return CatalogUpsertResponse(teams_upserted=teams, players_upserted=players)
