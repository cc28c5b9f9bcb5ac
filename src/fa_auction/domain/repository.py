# src/fa_auction/domain/repository.py
"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.models import Auction, AuctionLot, Bid, SequencedLot


class AuctionRepositoryProtocol(Protocol):
    # Auctions
    async def get_open_auction(
        self, db: AsyncSession, for_update: bool = False
    ) -> Auction | None: ...

    async def get_auction(
        self, db: AsyncSession, auction_id: str, for_update: bool = False
    ) -> Auction | None: ...

    async def create_auction(
        self, db: AsyncSession, auction_id: str, phase: int
    ) -> Auction: ...

    async def set_status(self, db: AsyncSession, auction_id: str, status: str) -> None: ...

    async def set_current_lot(
        self, db: AsyncSession, auction_id: str, lot_id: str | None
    ) -> None: ...

    # Lots
    async def insert_lots(self, db: AsyncSession, lots: Sequence[AuctionLot]) -> int: ...

    async def get_lot(
        self, db: AsyncSession, lot_id: str, for_update: bool = False
    ) -> AuctionLot | None: ...

    async def list_sequenced_lots(
        self, db: AsyncSession, auction_id: str
    ) -> list[SequencedLot]: ...

    async def mark_resolved(
        self, db: AsyncSession, lot_id: str, winner_id: str | None, price: int
    ) -> None: ...

    async def clear_resolution(self, db: AsyncSession, lot_id: str) -> None: ...

    async def list_sold_lots(self, db: AsyncSession, auction_id: str) -> list[AuctionLot]: ...

    async def delete_allocation_lots(
        self, db: AsyncSession, auction_id: str, manager_id: str, squad_phase: int
    ) -> int: ...

    async def has_allocation_lot(
        self, db: AsyncSession, manager_id: str, squad_phase: int, player_id: int
    ) -> bool: ...

    # Bids
    async def get_leading_bid(self, db: AsyncSession, lot_id: str) -> Bid | None: ...

    async def insert_bid(self, db: AsyncSession, bid: Bid) -> None: ...

    async def delete_bids(self, db: AsyncSession, lot_id: str) -> int: ...

    async def list_bids(self, db: AsyncSession, auction_id: str) -> list[Bid]: ...

    # Spend
    async def sum_spent(self, db: AsyncSession, auction_id: str, manager_id: str) -> int: ...

    async def spent_by_manager(self, db: AsyncSession, auction_id: str) -> dict[str, int]: ...

    async def reset_all(self, db: AsyncSession) -> None: ...
