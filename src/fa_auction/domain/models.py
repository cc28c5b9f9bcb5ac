"""Domain models for fa_auction: pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime

# Live bidding and lot sales always fill the winner's phase-1 squad,
# whatever phase the auction itself is labelled with.
AUCTION_SQUAD_PHASE = 1


@dataclass
class Auction:
    id: str
    status: str
    phase: int
    current_lot_id: str | None
    created_at: datetime | None = None
    closed_at: datetime | None = None


@dataclass
class AuctionLot:
    id: str
    auction_id: str
    player_id: int
    source: str = "AUCTION"
    squad_phase: int = AUCTION_SQUAD_PHASE
    is_sold: bool = False
    sold_price: int | None = None
    winner_id: str | None = None
    resolved_at: datetime | None = None


@dataclass
class Bid:
    id: str
    lot_id: str
    manager_id: str
    amount: int  # half-units
    created_at: datetime | None = None
    manager_username: str | None = None


@dataclass
class SequencedLot:
    """A lot joined with the player fields that define its place in the sequence."""

    id: str
    auction_id: str
    player_id: int
    position: str
    list_price: int
    first_name: str
    second_name: str
    web_name: str
    is_sold: bool = False
    sold_price: int | None = None
    winner_id: str | None = None
    winner_username: str | None = None
    team_short_name: str | None = None
    bids: list[Bid] = field(default_factory=list)


@dataclass
class AuctionState:
    """Current-state view: the open auction, its ordered lots and the current lot."""

    auction: Auction | None
    lots: list[SequencedLot]
    current_lot: SequencedLot | None
    current_index: int
