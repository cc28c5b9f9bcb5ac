"""AuctionEngine: serialized, transactional entry point for every ledger mutation.

Each operation runs under a per-auction asyncio.Lock (in-process
serialization) and inside one session transaction: commit on success,
rollback on any exception. Row locks taken by the clearing code
(SELECT ... FOR UPDATE on lot, auction and manager rows) guard against
writers in other processes. Mutations are never retried.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.models import AUCTION_SQUAD_PHASE, Auction, AuctionLot, Bid
from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_auction.domain.sequencer import order_players
from src.fa_clearing.domain.admission import check_admission
from src.fa_clearing.domain.allocation import (
    AllocationItem,
    AllocationOutcome,
    allocate_phase_squad,
)
from src.fa_clearing.domain.reopen import ReopenOutcome, reopen_lot
from src.fa_clearing.domain.sale import SaleOutcome, lock_open_lot, mark_unsold, resolve_lot
from src.fa_common.datetime_utils import utc_now
from src.fa_common.enums import AuctionStatus, LotSource, ResolveMode
from src.fa_common.errors import (
    AuctionAlreadyOpenError,
    AuctionNotFoundError,
    LotNotFoundError,
    ManagerNotFoundError,
    NoOpenAuctionError,
    PlayerNotFoundError,
)
from src.fa_common.half_units import half_units_to_display
from src.fa_common.id_generator import generate_id, generate_ids
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_risk.rules.auction_status import check_no_other_open
from src.fa_risk.rules.bid_amount import check_bid_amount

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Lock scope used before any auction exists (start) or when none is open (allocation)
_NO_AUCTION_SCOPE = "__no_auction__"


class AuctionEngine:
    def __init__(
        self,
        league: LeagueRepositoryProtocol,
        auctions: AuctionRepositoryProtocol,
    ) -> None:
        self._league = league
        self._auctions = auctions
        self._auction_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _get_or_create_lock(self, scope: str) -> asyncio.Lock:
        return self._auction_locks[scope]

    async def _run(
        self, scope: str, db: AsyncSession, op: Callable[[], Awaitable[T]]
    ) -> T:
        async with self._get_or_create_lock(scope):
            try:
                result = await op()
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return result

    async def _lot_scope(self, lot_id: str, db: AsyncSession) -> str:
        # auction_id of a lot never changes, so an unlocked read is enough to pick the lock
        lot = await self._auctions.get_lot(db, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        return lot.auction_id

    async def _open_scope(self, db: AsyncSession) -> str:
        auction = await self._auctions.get_open_auction(db)
        return auction.id if auction is not None else _NO_AUCTION_SCOPE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_auction(
        self, phase: int, db: AsyncSession
    ) -> tuple[Auction, list[AuctionLot]]:
        return await self._run(
            _NO_AUCTION_SCOPE, db, lambda: self._start_auction_inner(phase, db)
        )

    async def _start_auction_inner(
        self, phase: int, db: AsyncSession
    ) -> tuple[Auction, list[AuctionLot]]:
        existing = await self._auctions.get_open_auction(db, for_update=True)
        if existing is not None:
            raise AuctionAlreadyOpenError(existing.id)

        auction = await self._auctions.create_auction(db, generate_id(), phase)
        players = order_players(await self._league.list_players(db))
        lots = [
            AuctionLot(id=lot_id, auction_id=auction.id, player_id=p.id)
            for lot_id, p in zip(generate_ids(len(players)), players, strict=True)
        ]
        await self._auctions.insert_lots(db, lots)
        first = lots[0].id if lots else None
        await self._auctions.set_current_lot(db, auction.id, first)
        auction.current_lot_id = first
        logger.info("auction started: id=%s phase=%d lots=%d", auction.id, phase, len(lots))
        return auction, lots

    async def end_auction(self, db: AsyncSession) -> Auction:
        scope = await self._open_scope(db)
        return await self._run(scope, db, lambda: self._end_auction_inner(db))

    async def _end_auction_inner(self, db: AsyncSession) -> Auction:
        auction = await self._auctions.get_open_auction(db, for_update=True)
        if auction is None:
            raise NoOpenAuctionError()
        await self._auctions.set_status(db, auction.id, AuctionStatus.CLOSED.value)
        auction.status = AuctionStatus.CLOSED.value
        auction.closed_at = utc_now()
        logger.info("auction ended: id=%s", auction.id)
        return auction

    async def skip_to_lot(self, lot_id: str, db: AsyncSession) -> Auction:
        scope = await self._lot_scope(lot_id, db)
        return await self._run(scope, db, lambda: self._skip_inner(lot_id, db))

    async def _skip_inner(self, lot_id: str, db: AsyncSession) -> Auction:
        lot = await self._auctions.get_lot(db, lot_id)
        if lot is None or lot.source != LotSource.AUCTION.value:
            raise LotNotFoundError(lot_id)
        auction = await self._auctions.get_auction(db, lot.auction_id, for_update=True)
        if auction is None:
            raise AuctionNotFoundError(lot.auction_id)
        check_no_other_open(auction.id, await self._auctions.get_open_auction(db))
        if auction.status != AuctionStatus.OPEN.value:
            await self._auctions.set_status(db, auction.id, AuctionStatus.OPEN.value)
            auction.status = AuctionStatus.OPEN.value
        await self._auctions.set_current_lot(db, auction.id, lot.id)
        auction.current_lot_id = lot.id
        logger.info("skipped to lot: auction=%s lot=%s", auction.id, lot.id)
        return auction

    # ------------------------------------------------------------------
    # Bid Engine
    # ------------------------------------------------------------------

    async def place_bid(
        self, lot_id: str, manager_id: str, amount: int, db: AsyncSession
    ) -> Bid:
        scope = await self._lot_scope(lot_id, db)
        return await self._run(
            scope, db, lambda: self._place_bid_inner(lot_id, manager_id, amount, db)
        )

    async def _place_bid_inner(
        self, lot_id: str, manager_id: str, amount: int, db: AsyncSession
    ) -> Bid:
        lot = await lock_open_lot(lot_id, self._auctions, db)
        leading = await self._auctions.get_leading_bid(db, lot.id)
        check_bid_amount(amount, leading.amount if leading else None)

        manager = await self._league.get_manager(db, manager_id, for_update=True)
        if manager is None:
            raise ManagerNotFoundError(manager_id)
        player = await self._league.get_player(db, lot.player_id)
        if player is None:
            raise PlayerNotFoundError(lot.player_id)
        await check_admission(
            manager, player, amount, AUCTION_SQUAD_PHASE, self._league, self._auctions, db
        )

        bid = Bid(
            id=generate_id(),
            lot_id=lot.id,
            manager_id=manager.id,
            amount=amount,
            created_at=utc_now(),
            manager_username=manager.username,
        )
        await self._auctions.insert_bid(db, bid)
        logger.info(
            "bid placed: lot=%s manager=%s amount=%s",
            lot.id, manager.username, half_units_to_display(amount),
        )
        return bid

    # ------------------------------------------------------------------
    # Sale Resolver
    # ------------------------------------------------------------------

    async def resolve_lot(
        self,
        lot_id: str,
        mode: ResolveMode,
        db: AsyncSession,
        manager_id: str | None = None,
        price: int | None = None,
    ) -> SaleOutcome:
        scope = await self._lot_scope(lot_id, db)
        if mode == ResolveMode.UNSOLD:
            return await self._run(scope, db, lambda: mark_unsold(lot_id, self._auctions, db))
        return await self._run(
            scope,
            db,
            lambda: resolve_lot(
                lot_id, mode, self._league, self._auctions, db,
                manager_id=manager_id, price=price,
            ),
        )

    async def reopen_lot(self, lot_id: str, db: AsyncSession) -> ReopenOutcome:
        scope = await self._lot_scope(lot_id, db)
        return await self._run(
            scope, db, lambda: reopen_lot(lot_id, self._league, self._auctions, db)
        )

    # ------------------------------------------------------------------
    # Bulk allocation
    # ------------------------------------------------------------------

    async def allocate_phase_squad(
        self,
        manager_id: str,
        phase: int,
        items: list[AllocationItem],
        db: AsyncSession,
    ) -> AllocationOutcome:
        scope = await self._open_scope(db)
        return await self._run(
            scope,
            db,
            lambda: allocate_phase_squad(
                manager_id, phase, items, self._league, self._auctions, db
            ),
        )
