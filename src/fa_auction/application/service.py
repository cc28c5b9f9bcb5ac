"""AuctionApplicationService: read-side view of the open auction.

Bids are written through the AuctionEngine; this service only assembles
the current-state view and retries it on transient ledger failures.
"""

from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.models import AuctionState, Bid
from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_auction.domain.sequencer import order_lots, select_current_lot
from src.fa_auction.infrastructure.persistence import AuctionRepository
from src.fa_common.database import retry_read


class AuctionApplicationService:
    def __init__(self, repo: AuctionRepositoryProtocol | None = None) -> None:
        self._repo: AuctionRepositoryProtocol = repo or AuctionRepository()

    async def get_current_state(self, db: AsyncSession) -> AuctionState:
        """Return the open auction with its ordered lots, or an empty state."""
        return await retry_read(db, lambda: self._load_state(db))

    async def _load_state(self, db: AsyncSession) -> AuctionState:
        auction = await self._repo.get_open_auction(db)
        if auction is None:
            return AuctionState(auction=None, lots=[], current_lot=None, current_index=-1)

        lots = order_lots(await self._repo.list_sequenced_lots(db, auction.id))
        by_lot: dict[str, list[Bid]] = defaultdict(list)
        for bid in await self._repo.list_bids(db, auction.id):
            by_lot[bid.lot_id].append(bid)
        for lot in lots:
            lot.bids = by_lot.get(lot.id, [])

        current, index = select_current_lot(lots, auction.current_lot_id)
        return AuctionState(auction=auction, lots=lots, current_lot=current, current_index=index)
