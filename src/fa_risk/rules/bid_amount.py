from src.fa_common.errors import BidTooLowError


def check_bid_amount(amount: int, leading: int | None) -> None:
    """Raise BidTooLowError (4003) unless amount beats the leading bid (or 0 if none).

    List price is advisory for bids; only a manual sale enforces it.
    """
    floor = leading or 0
    if amount <= floor:
        raise BidTooLowError(amount, floor)
