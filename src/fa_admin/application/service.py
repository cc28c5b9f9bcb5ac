# src/fa_admin/application/service.py
"""Admin application service.

Auction and squad mutations are delegated to the AuctionEngine so they share
its per-auction serialization and transaction boundary. Budget top-up and
reset are whole-league operations and own their transaction here.
"""
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_auction.infrastructure.persistence import AuctionRepository
from src.fa_clearing.domain.allocation import AllocationItem
from src.fa_clearing.domain.invariants import verify_ledger_invariants
from src.fa_common.database import retry_read
from src.fa_common.datetime_utils import iso_or_none
from src.fa_common.enums import ResolveMode
from src.fa_common.half_units import half_units_to_display
from src.fa_engine.engine import AuctionEngine
from src.fa_engine.service import get_auction_engine
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_league.infrastructure.persistence import LeagueRepository

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(
        self,
        engine: AuctionEngine | None = None,
        league: LeagueRepositoryProtocol | None = None,
        auctions: AuctionRepositoryProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._league: LeagueRepositoryProtocol = league or LeagueRepository()
        self._auctions: AuctionRepositoryProtocol = auctions or AuctionRepository()

    @property
    def engine(self) -> AuctionEngine:
        return self._engine or get_auction_engine()

    # ------------------------------------------------------------------
    # Auction lifecycle
    # ------------------------------------------------------------------

    async def start_auction(self, phase: int, db: AsyncSession) -> dict[str, Any]:
        auction, lots = await self.engine.start_auction(phase, db)
        return {
            "auction_id": auction.id,
            "status": auction.status,
            "phase": auction.phase,
            "current_lot_id": auction.current_lot_id,
            "lots_created": len(lots),
            "lots": [{"lot_id": lot.id, "player_id": lot.player_id} for lot in lots],
        }

    async def end_auction(self, db: AsyncSession) -> dict[str, Any]:
        auction = await self.engine.end_auction(db)
        return {
            "auction_id": auction.id,
            "status": auction.status,
            "closed_at": iso_or_none(auction.closed_at),
        }

    async def skip_to_lot(self, lot_id: str, db: AsyncSession) -> dict[str, Any]:
        auction = await self.engine.skip_to_lot(lot_id, db)
        return {
            "auction_id": auction.id,
            "status": auction.status,
            "current_lot_id": auction.current_lot_id,
        }

    # ------------------------------------------------------------------
    # Bids and sales
    # ------------------------------------------------------------------

    async def bid_on_behalf(
        self, lot_id: str, manager_id: str, amount: int, db: AsyncSession
    ) -> dict[str, Any]:
        bid = await self.engine.place_bid(lot_id, manager_id, amount, db)
        return {
            "bid_id": bid.id,
            "lot_id": bid.lot_id,
            "manager_id": bid.manager_id,
            "username": bid.manager_username,
            "amount": bid.amount,
            "amount_display": half_units_to_display(bid.amount),
        }

    async def sell_lot(
        self,
        lot_id: str,
        db: AsyncSession,
        manager_id: str | None = None,
        price: int | None = None,
    ) -> dict[str, Any]:
        """AUTO when neither manager nor price is given, otherwise MANUAL."""
        if manager_id is None and price is None:
            outcome = await self.engine.resolve_lot(lot_id, ResolveMode.AUTO, db)
        else:
            outcome = await self.engine.resolve_lot(
                lot_id, ResolveMode.MANUAL, db, manager_id=manager_id, price=price
            )
        return _sale_dict(outcome)

    async def mark_unsold(self, lot_id: str, db: AsyncSession) -> dict[str, Any]:
        outcome = await self.engine.resolve_lot(lot_id, ResolveMode.UNSOLD, db)
        return _sale_dict(outcome)

    async def reopen_lot(self, lot_id: str, db: AsyncSession) -> dict[str, Any]:
        outcome = await self.engine.reopen_lot(lot_id, db)
        return {
            "lot_id": outcome.lot_id,
            "auction_id": outcome.auction_id,
            "player_id": outcome.player_id,
            "previous_winner_id": outcome.previous_winner_id,
            "refunded": outcome.refunded,
            "refunded_display": half_units_to_display(outcome.refunded),
            "auction_reopened": outcome.auction_reopened,
        }

    # ------------------------------------------------------------------
    # Squads
    # ------------------------------------------------------------------

    async def allocate_squad(
        self,
        manager_id: str,
        phase: int,
        items: list[AllocationItem],
        db: AsyncSession,
    ) -> dict[str, Any]:
        outcome = await self.engine.allocate_phase_squad(manager_id, phase, items, db)
        return {
            "manager_id": outcome.manager_id,
            "username": outcome.username,
            "phase": outcome.phase,
            "players_allocated": outcome.players_allocated,
            "total_fee": outcome.total_fee,
            "total_fee_display": half_units_to_display(outcome.total_fee),
            "removed_player_ids": outcome.removed_player_ids,
            "auction_id": outcome.auction_id,
        }

    # ------------------------------------------------------------------
    # League maintenance
    # ------------------------------------------------------------------

    async def add_budget_to_all(self, amount: int, db: AsyncSession) -> dict[str, Any]:
        """Add ``amount`` thousandths to every non-admin manager's starting budget."""
        try:
            updated = await self._league.add_budget_to_all(db, amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("budget added: amount=%d managers=%d", amount, updated)
        return {"managers_updated": updated, "amount": amount}

    async def reset_auction_data(self, db: AsyncSession) -> dict[str, Any]:
        """Wipe auctions, lots, bids and squads; restore default budgets. One transaction."""
        try:
            await self._auctions.reset_all(db)
            await self._league.reset_squads(db)
            updated = await self._league.reset_budgets(db, settings.DEFAULT_STARTING_BUDGET)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.warning("auction data reset: managers=%d", updated)
        return {
            "managers_reset": updated,
            "starting_budget": settings.DEFAULT_STARTING_BUDGET,
        }

    async def verify_invariants(self, db: AsyncSession) -> dict[str, Any]:
        violations = await retry_read(
            db, lambda: verify_ledger_invariants(self._league, self._auctions, db)
        )
        return {"ok": len(violations) == 0, "violations": violations}


def _sale_dict(outcome: Any) -> dict[str, Any]:
    return {
        "lot_id": outcome.lot_id,
        "player_id": outcome.player_id,
        "sold": outcome.sold,
        "winner_id": outcome.winner_id,
        "winner_username": outcome.winner_username,
        "price": outcome.price,
        "price_display": half_units_to_display(outcome.price),
        "next_lot_id": outcome.next_lot_id,
    }
