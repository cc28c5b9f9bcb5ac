"""Sale Resolver: closes one lot as AUTO, MANUAL or UNSOLD.

Every write below happens inside the engine's transaction; validation runs
before the first write, so a rejected sale leaves no trace:

  1. lock lot + auction, reject resolved lots and closed auctions
  2. pick winner/price (highest bid, explicit manager/price, or none)
  3. validate price floor (manual), budget, squad caps, ownership
  4. mark lot resolved, delete its bids
  5. winner: find-or-create phase-1 squad, insert squad row with the fee
  6. advance current_lot_id to the next lot in sequence
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.models import AUCTION_SQUAD_PHASE, AuctionLot
from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_auction.domain.sequencer import next_lot_id, order_lots
from src.fa_clearing.domain.admission import check_admission
from src.fa_common.enums import ResolveMode
from src.fa_common.errors import (
    AuctionNotFoundError,
    LotAlreadySoldError,
    LotNotFoundError,
    ManagerNotFoundError,
    PlayerNotFoundError,
)
from src.fa_common.half_units import half_units_to_display
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_risk.rules.auction_status import check_auction_open
from src.fa_risk.rules.price_floor import check_price_floor

logger = logging.getLogger(__name__)


@dataclass
class SaleOutcome:
    lot_id: str
    player_id: int
    sold: bool  # False when resolved with no winner
    winner_id: str | None
    winner_username: str | None
    price: int
    next_lot_id: str | None


async def lock_open_lot(
    lot_id: str, auctions: AuctionRepositoryProtocol, db: AsyncSession
) -> AuctionLot:
    """Lock an unresolved lot and its auction; both must be live."""
    lot = await auctions.get_lot(db, lot_id, for_update=True)
    if lot is None:
        raise LotNotFoundError(lot_id)
    auction = await auctions.get_auction(db, lot.auction_id, for_update=True)
    if auction is None:
        raise AuctionNotFoundError(lot.auction_id)
    check_auction_open(auction)
    if lot.is_sold:
        raise LotAlreadySoldError(lot_id)
    return lot


async def advance_after(
    auction_id: str, lot_id: str, auctions: AuctionRepositoryProtocol, db: AsyncSession
) -> str | None:
    """Re-derive the sequence and point the auction at the lot after ``lot_id``."""
    ordered = order_lots(await auctions.list_sequenced_lots(db, auction_id))
    following = next_lot_id(ordered, lot_id)
    await auctions.set_current_lot(db, auction_id, following)
    return following


async def resolve_lot(
    lot_id: str,
    mode: ResolveMode,
    league: LeagueRepositoryProtocol,
    auctions: AuctionRepositoryProtocol,
    db: AsyncSession,
    manager_id: str | None = None,
    price: int | None = None,
) -> SaleOutcome:
    lot = await lock_open_lot(lot_id, auctions, db)

    winner_id: str | None = None
    amount = 0
    if mode == ResolveMode.AUTO:
        leading = await auctions.get_leading_bid(db, lot_id)
        if leading is not None:
            winner_id, amount = leading.manager_id, leading.amount
    elif mode == ResolveMode.MANUAL:
        if manager_id is None or price is None:
            raise ValueError("MANUAL resolution requires manager_id and price")
        winner_id, amount = manager_id, price

    if winner_id is None:
        return await _resolve_unsold(lot, auctions, db)

    player = await league.get_player(db, lot.player_id)
    if player is None:
        raise PlayerNotFoundError(lot.player_id)
    if mode == ResolveMode.MANUAL:
        check_price_floor(amount, player.list_price)
    manager = await league.get_manager(db, winner_id, for_update=True)
    if manager is None:
        raise ManagerNotFoundError(winner_id)
    await check_admission(manager, player, amount, AUCTION_SQUAD_PHASE, league, auctions, db)

    await auctions.mark_resolved(db, lot.id, manager.id, amount)
    await auctions.delete_bids(db, lot.id)
    squad = await league.get_or_create_squad(db, manager.id, AUCTION_SQUAD_PHASE)
    await league.add_squad_player(db, squad.id, player.id, amount)
    following = await advance_after(lot.auction_id, lot.id, auctions, db)

    logger.info(
        "lot sold: lot=%s player=%s winner=%s price=%s mode=%s next=%s",
        lot.id, player.id, manager.username, half_units_to_display(amount),
        mode.value, following,
    )
    return SaleOutcome(
        lot_id=lot.id,
        player_id=player.id,
        sold=True,
        winner_id=manager.id,
        winner_username=manager.username,
        price=amount,
        next_lot_id=following,
    )


async def mark_unsold(
    lot_id: str, auctions: AuctionRepositoryProtocol, db: AsyncSession
) -> SaleOutcome:
    lot = await lock_open_lot(lot_id, auctions, db)
    return await _resolve_unsold(lot, auctions, db)


async def _resolve_unsold(
    lot: AuctionLot, auctions: AuctionRepositoryProtocol, db: AsyncSession
) -> SaleOutcome:
    # Resolved with no winner: is_sold=True, price 0
    await auctions.mark_resolved(db, lot.id, None, 0)
    await auctions.delete_bids(db, lot.id)
    following = await advance_after(lot.auction_id, lot.id, auctions, db)
    logger.info("lot unsold: lot=%s player=%s next=%s", lot.id, lot.player_id, following)
    return SaleOutcome(
        lot_id=lot.id,
        player_id=lot.player_id,
        sold=False,
        winner_id=None,
        winner_username=None,
        price=0,
        next_lot_id=following,
    )
