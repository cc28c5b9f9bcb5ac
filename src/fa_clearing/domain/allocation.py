"""Bulk phase allocation: replace one manager's squad for a phase.

Bypasses bidding. The new list is validated on its own (the old squad for
that phase is discarded, not merged). Synthetic ALLOCATION lots are written
to the open auction, if any, so the fees show up in the manager's spend.

The auction squad cannot be replaced while the manager still holds lots won
in the open auction: those fees stay charged, so the admin reopens them first.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.models import AUCTION_SQUAD_PHASE, AuctionLot
from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_common.enums import LotSource
from src.fa_common.errors import (
    AuctionWonPlayersError,
    DuplicatePlayerError,
    ManagerNotFoundError,
    PlayerNotFoundError,
)
from src.fa_common.half_units import half_units_to_display
from src.fa_common.id_generator import generate_id
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_risk.rules.budget import check_budget, load_budget
from src.fa_risk.rules.ownership import check_not_owned
from src.fa_risk.rules.squad_limits import check_allocation_list

logger = logging.getLogger(__name__)


@dataclass
class AllocationItem:
    player_id: int
    fee: int  # half-units


@dataclass
class AllocationOutcome:
    manager_id: str
    username: str
    phase: int
    players_allocated: int
    total_fee: int
    removed_player_ids: list[int] = field(default_factory=list)
    auction_id: str | None = None


async def allocate_phase_squad(
    manager_id: str,
    phase: int,
    items: list[AllocationItem],
    league: LeagueRepositoryProtocol,
    auctions: AuctionRepositoryProtocol,
    db: AsyncSession,
) -> AllocationOutcome:
    # Lock order matches bids and sales: auction row before manager row
    auction = await auctions.get_open_auction(db, for_update=True)
    manager = await league.get_manager(db, manager_id, for_update=True)
    if manager is None:
        raise ManagerNotFoundError(manager_id)

    player_ids = [item.player_id for item in items]
    repeated = [pid for pid, n in Counter(player_ids).items() if n > 1]
    if repeated:
        raise DuplicatePlayerError(repeated[0])

    players = await league.get_players(db, player_ids)
    for pid in player_ids:
        if pid not in players:
            raise PlayerNotFoundError(pid)

    await check_not_owned(manager.id, player_ids, phase, league, db, allow_self=True)
    check_allocation_list([players[pid].position for pid in player_ids])

    if auction is not None and phase == AUCTION_SQUAD_PHASE:
        won = [
            lot.id for lot in await auctions.list_sequenced_lots(db, auction.id)
            if lot.is_sold and lot.winner_id == manager.id
        ]
        if won:
            raise AuctionWonPlayersError(manager.username, sorted(won))

    # Credit back this manager's previous allocation for the phase before checking budget
    if auction is not None:
        await auctions.delete_allocation_lots(db, auction.id, manager.id, phase)
    budget = await load_budget(manager, auctions, db)
    total_fee = sum(item.fee for item in items)
    check_budget(manager, budget, total_fee)

    squad = await league.get_or_create_squad(db, manager.id, phase)
    removed = await league.clear_squad(db, manager.id, phase)
    for item in items:
        await league.add_squad_player(db, squad.id, item.player_id, item.fee)

    if auction is not None and items:
        await auctions.insert_lots(
            db,
            [
                AuctionLot(
                    id=generate_id(),
                    auction_id=auction.id,
                    player_id=item.player_id,
                    source=LotSource.ALLOCATION.value,
                    squad_phase=phase,
                    is_sold=True,
                    sold_price=item.fee,
                    winner_id=manager.id,
                )
                for item in items
            ],
        )

    logger.info(
        "squad allocated: manager=%s phase=%d players=%d total=%s replaced=%d",
        manager.username, phase, len(items), half_units_to_display(total_fee), len(removed),
    )
    return AllocationOutcome(
        manager_id=manager.id,
        username=manager.username,
        phase=phase,
        players_allocated=len(items),
        total_fee=total_fee,
        removed_player_ids=removed,
        auction_id=auction.id if auction is not None else None,
    )
