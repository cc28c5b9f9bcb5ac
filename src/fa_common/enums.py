"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class Position(str, Enum):
    """Playing position; declaration order is the lot sequence order."""
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    FWD = "FWD"


class AuctionStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class LotSource(str, Enum):
    """AUCTION lots are sequenced for bidding; ALLOCATION lots only track spend."""
    AUCTION = "AUCTION"
    ALLOCATION = "ALLOCATION"


class ResolveMode(str, Enum):
    AUTO = "AUTO"
    MANUAL = "MANUAL"
    UNSOLD = "UNSOLD"


PHASES: tuple[int, ...] = (1, 2, 3, 4)
