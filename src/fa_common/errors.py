"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity/Manager
  2xxx: Budget
  3xxx: Auction
  4xxx: Lot/Bid
  5xxx: Squad/Player
  9xxx: System

Validation errors carry a structured ``detail`` dict (limits, current
values, offending position or manager) that the API layer renders into
the response ``data`` field.
"""

from typing import Any

from src.fa_common.half_units import half_units_to_display


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.detail = detail
        super().__init__(message)


# --- 1xxx: Identity/Manager ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Admin access required", 403)


class ManagerNotFoundError(AppError):
    def __init__(self, manager_id: str) -> None:
        super().__init__(
            1007, f"Manager not found: {manager_id}", 404, {"manager_id": manager_id}
        )


# --- 2xxx: Budget ---

class InsufficientBudgetError(AppError):
    def __init__(self, username: str, required: int, remaining: int) -> None:
        super().__init__(
            2001,
            f"{username} only has {half_units_to_display(remaining)} remaining budget",
            422,
            {
                "manager": username,
                "required": required,
                "remaining": remaining,
                "shortfall": required - remaining,
            },
        )


# --- 3xxx: Auction ---

class AuctionNotFoundError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(
            3001, f"Auction not found: {auction_id}", 404, {"auction_id": auction_id}
        )


class AuctionAlreadyOpenError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(
            3002,
            f"An auction is already open: {auction_id}",
            409,
            {"auction_id": auction_id},
        )


class NoOpenAuctionError(AppError):
    def __init__(self) -> None:
        super().__init__(3003, "No open auction", 409)


class AuctionNotOpenError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(
            3004, f"Auction is not open: {auction_id}", 409, {"auction_id": auction_id}
        )


# --- 4xxx: Lot/Bid ---

class LotNotFoundError(AppError):
    def __init__(self, lot_id: str) -> None:
        super().__init__(4001, f"Lot not found: {lot_id}", 404, {"lot_id": lot_id})


class LotAlreadySoldError(AppError):
    def __init__(self, lot_id: str) -> None:
        super().__init__(4002, f"Lot already resolved: {lot_id}", 409, {"lot_id": lot_id})


class BidTooLowError(AppError):
    def __init__(self, amount: int, leading: int) -> None:
        super().__init__(
            4003,
            f"Bid of {half_units_to_display(amount)} must be higher than "
            f"{half_units_to_display(leading)}",
            422,
            {"amount": amount, "leading": leading},
        )


class PriceBelowListingError(AppError):
    def __init__(self, price: int, list_price: int) -> None:
        super().__init__(
            4004,
            f"Price must be at least the starting price of {half_units_to_display(list_price)}",
            422,
            {"price": price, "list_price": list_price},
        )


class LotNotResolvedError(AppError):
    def __init__(self, lot_id: str) -> None:
        super().__init__(4005, f"Lot has not been resolved: {lot_id}", 409, {"lot_id": lot_id})


# --- 5xxx: Squad/Player ---

class SquadFullError(AppError):
    def __init__(self, username: str, size: int, limit: int) -> None:
        super().__init__(
            5001,
            f"{username} already has {size}/{limit} players",
            422,
            {"manager": username, "current": size, "limit": limit},
        )


class PositionLimitExceededError(AppError):
    def __init__(self, position: str, current: int, limit: int) -> None:
        super().__init__(
            5002,
            f"{position}: {current}/{limit}",
            422,
            {"position": position, "current": current, "limit": limit},
        )


class OwnedByOtherManagerError(AppError):
    def __init__(self, player_id: int, owner: str, phase: int) -> None:
        super().__init__(
            5003,
            f"Player {player_id} is already owned by {owner} in phase {phase}",
            422,
            {"player_id": player_id, "owner": owner, "phase": phase},
        )


class PlayerNotFoundError(AppError):
    def __init__(self, player_id: int) -> None:
        super().__init__(
            5004, f"Player not found: {player_id}", 404, {"player_id": player_id}
        )


class TooManyPlayersError(AppError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            5005,
            f"Squad cannot have more than {limit} players, got {count}",
            422,
            {"current": count, "limit": limit},
        )


class DuplicatePlayerError(AppError):
    def __init__(self, player_id: int) -> None:
        super().__init__(
            5006,
            f"Player {player_id} appears more than once",
            422,
            {"player_id": player_id},
        )


class AuctionWonPlayersError(AppError):
    def __init__(self, username: str, lot_ids: list[str]) -> None:
        super().__init__(
            5007,
            f"{username} holds {len(lot_ids)} lot(s) won in the open auction; reopen them first",
            409,
            {"manager": username, "lot_ids": lot_ids},
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self, retry_after: int = 60) -> None:
        super().__init__(9001, "Rate limit exceeded", 429, {"retry_after": retry_after})


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class LedgerUnavailableError(AppError):
    def __init__(self) -> None:
        super().__init__(9003, "Ledger store unavailable", 503)
