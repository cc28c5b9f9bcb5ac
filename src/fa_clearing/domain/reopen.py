"""Reopen: administrative undo of a resolved lot.

Removes the winner's squad row (which is the ownership record), clears the
lot's resolution, deletes any bids, and points the auction back at the lot,
re-opening the auction if it was CLOSED. A squad row that a later bulk
allocation now backs (an ALLOCATION lot for the same player and phase) is
left in place.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_common.enums import AuctionStatus, LotSource
from src.fa_common.errors import AuctionNotFoundError, LotNotFoundError, LotNotResolvedError
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_risk.rules.auction_status import check_no_other_open

logger = logging.getLogger(__name__)


@dataclass
class ReopenOutcome:
    lot_id: str
    auction_id: str
    player_id: int
    previous_winner_id: str | None
    refunded: int
    auction_reopened: bool


async def reopen_lot(
    lot_id: str,
    league: LeagueRepositoryProtocol,
    auctions: AuctionRepositoryProtocol,
    db: AsyncSession,
) -> ReopenOutcome:
    lot = await auctions.get_lot(db, lot_id, for_update=True)
    if lot is None or lot.source != LotSource.AUCTION.value:
        raise LotNotFoundError(lot_id)
    if not lot.is_sold:
        raise LotNotResolvedError(lot_id)
    auction = await auctions.get_auction(db, lot.auction_id, for_update=True)
    if auction is None:
        raise AuctionNotFoundError(lot.auction_id)
    check_no_other_open(auction.id, await auctions.get_open_auction(db))

    squad_row_kept = False
    if lot.winner_id is not None:
        squad_row_kept = await auctions.has_allocation_lot(
            db, lot.winner_id, lot.squad_phase, lot.player_id
        )
        if not squad_row_kept:
            await league.remove_squad_player(
                db, lot.winner_id, lot.squad_phase, lot.player_id
            )
    await auctions.delete_bids(db, lot.id)
    await auctions.clear_resolution(db, lot.id)

    reopened = auction.status != AuctionStatus.OPEN.value
    if reopened:
        await auctions.set_status(db, auction.id, AuctionStatus.OPEN.value)
    await auctions.set_current_lot(db, auction.id, lot.id)

    logger.info(
        "lot reopened: lot=%s player=%s previous_winner=%s auction_reopened=%s"
        " squad_row_kept=%s",
        lot.id, lot.player_id, lot.winner_id, reopened, squad_row_kept,
    )
    return ReopenOutcome(
        lot_id=lot.id,
        auction_id=auction.id,
        player_id=lot.player_id,
        previous_winner_id=lot.winner_id,
        refunded=lot.sold_price or 0,
        auction_reopened=reopened,
    )
