from src.fa_common.errors import PriceBelowListingError


def check_price_floor(price: int, list_price: int) -> None:
    """Raise PriceBelowListingError (4004) if a manual sale undercuts the list price."""
    if price < list_price:
        raise PriceBelowListingError(price, list_price)
