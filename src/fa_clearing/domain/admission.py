"""Shared admission checks for every path that puts a player in a squad.

Bids, manual sales and auto sales all run the same budget, roster and
ownership checks, against state read inside the caller's transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_common.errors import AppError
from src.fa_league.domain.models import Manager, Player
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_risk.rules.budget import Budget, check_budget, load_budget
from src.fa_risk.rules.ownership import check_not_owned
from src.fa_risk.rules.squad_limits import check_squad_admission

logger = logging.getLogger(__name__)


async def check_admission(
    manager: Manager,
    player: Player,
    amount: int,
    phase: int,
    league: LeagueRepositoryProtocol,
    auctions: AuctionRepositoryProtocol,
    db: AsyncSession,
) -> Budget:
    """Budget, then squad size and position quota, then ownership. Returns the budget read."""
    try:
        budget = await load_budget(manager, auctions, db)
        check_budget(manager, budget, amount)
        positions = await league.squad_positions(db, manager.id, phase)
        check_squad_admission(manager.username, positions, player.position)
        await check_not_owned(manager.id, [player.id], phase, league, db)
    except AppError as exc:
        logger.debug(
            "admission rejected: manager=%s player=%s amount=%d code=%d",
            manager.username, player.id, amount, exc.code,
        )
        raise
    return budget
