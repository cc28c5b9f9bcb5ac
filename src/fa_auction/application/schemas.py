"""Pydantic schemas for fa_auction API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.fa_auction.domain.models import Auction, AuctionState, Bid, SequencedLot
from src.fa_common.half_units import half_units_to_display


class PlaceBidRequest(BaseModel):
    amount: int = Field(..., ge=1, description="Bid amount in half-units (£0.5m steps)")


class BidResponse(BaseModel):
    bid_id: str
    lot_id: str
    manager_id: str
    username: str | None
    amount: int
    amount_display: str
    created_at: datetime | None

    @classmethod
    def from_domain(cls, bid: Bid) -> "BidResponse":
        return cls(
            bid_id=bid.id,
            lot_id=bid.lot_id,
            manager_id=bid.manager_id,
            username=bid.manager_username,
            amount=bid.amount,
            amount_display=half_units_to_display(bid.amount),
            created_at=bid.created_at,
        )


class LotResponse(BaseModel):
    lot_id: str
    player_id: int
    web_name: str
    first_name: str
    second_name: str
    position: str
    team: str | None
    list_price: int
    list_price_display: str
    is_sold: bool
    sold_price: int | None
    winner_id: str | None
    winner_username: str | None
    leading_bid: BidResponse | None
    bids: list[BidResponse]

    @classmethod
    def from_domain(cls, lot: SequencedLot) -> "LotResponse":
        bids = sorted(lot.bids, key=lambda b: b.amount, reverse=True)
        items = [BidResponse.from_domain(b) for b in bids]
        return cls(
            lot_id=lot.id,
            player_id=lot.player_id,
            web_name=lot.web_name,
            first_name=lot.first_name,
            second_name=lot.second_name,
            position=lot.position,
            team=lot.team_short_name,
            list_price=lot.list_price,
            list_price_display=half_units_to_display(lot.list_price),
            is_sold=lot.is_sold,
            sold_price=lot.sold_price,
            winner_id=lot.winner_id,
            winner_username=lot.winner_username,
            leading_bid=items[0] if items else None,
            bids=items,
        )


class AuctionSummary(BaseModel):
    auction_id: str
    status: str
    phase: int
    current_lot_id: str | None
    created_at: datetime | None
    closed_at: datetime | None

    @classmethod
    def from_domain(cls, auction: Auction) -> "AuctionSummary":
        return cls(
            auction_id=auction.id,
            status=auction.status,
            phase=auction.phase,
            current_lot_id=auction.current_lot_id,
            created_at=auction.created_at,
            closed_at=auction.closed_at,
        )


class AuctionStateResponse(BaseModel):
    auction: AuctionSummary | None
    current_lot: LotResponse | None
    current_index: int
    total_lots: int
    lots_remaining: int
    lots: list[LotResponse]

    @classmethod
    def from_domain(cls, state: AuctionState) -> "AuctionStateResponse":
        return cls(
            auction=AuctionSummary.from_domain(state.auction) if state.auction else None,
            current_lot=LotResponse.from_domain(state.current_lot) if state.current_lot else None,
            current_index=state.current_index,
            total_lots=len(state.lots),
            lots_remaining=sum(1 for lot in state.lots if not lot.is_sold),
            lots=[LotResponse.from_domain(lot) for lot in state.lots],
        )
