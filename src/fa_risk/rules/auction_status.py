from src.fa_auction.domain.models import Auction
from src.fa_common.enums import AuctionStatus
from src.fa_common.errors import AuctionAlreadyOpenError, AuctionNotOpenError


def check_auction_open(auction: Auction) -> None:
    """Raise AuctionNotOpenError (3004) unless the auction accepts bids and resolutions."""
    if auction.status != AuctionStatus.OPEN.value:
        raise AuctionNotOpenError(auction.id)


def check_no_other_open(auction_id: str, open_auction: Auction | None) -> None:
    """Raise AuctionAlreadyOpenError (3002) if a different auction is OPEN."""
    if open_auction is not None and open_auction.id != auction_id:
        raise AuctionAlreadyOpenError(open_auction.id)
