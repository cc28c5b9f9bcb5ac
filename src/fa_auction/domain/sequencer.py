"""Lot Sequencer: the fixed, re-derivable order of an auction's lots.

Order: position (GK < DEF < MID < FWD), list price descending, first name,
second name, then player id so the order is total. "Next" is purely
positional: it never looks at whether the successor is already resolved.
"""

from collections.abc import Iterable
from typing import TypeVar

from src.fa_auction.domain.models import SequencedLot
from src.fa_league.domain.models import Player

POSITION_ORDER: dict[str, int] = {"GK": 0, "DEF": 1, "MID": 2, "FWD": 3}

SortKey = tuple[int, int, str, str, int]

L = TypeVar("L", bound=SequencedLot)


def sequence_key(
    position: str, list_price: int, first_name: str, second_name: str, player_id: int
) -> SortKey:
    return (
        POSITION_ORDER.get(position, len(POSITION_ORDER)),
        -list_price,
        first_name,
        second_name,
        player_id,
    )


def player_sort_key(player: Player) -> SortKey:
    return sequence_key(
        player.position, player.list_price, player.first_name, player.second_name, player.id
    )


def lot_sort_key(lot: SequencedLot) -> SortKey:
    return sequence_key(
        lot.position, lot.list_price, lot.first_name, lot.second_name, lot.player_id
    )


def order_players(players: Iterable[Player]) -> list[Player]:
    return sorted(players, key=player_sort_key)


def order_lots(lots: Iterable[L]) -> list[L]:
    return sorted(lots, key=lot_sort_key)


def next_lot_id(ordered: list[L], lot_id: str) -> str | None:
    """Return the id of the lot immediately after ``lot_id``, or None if last/absent."""
    for index, lot in enumerate(ordered):
        if lot.id == lot_id:
            if index + 1 < len(ordered):
                return ordered[index + 1].id
            return None
    return None


def select_current_lot(
    ordered: list[L], current_lot_id: str | None
) -> tuple[L | None, int]:
    """Pick the lot to show as current, with its index (-1 if none).

    The pointer wins when it names an unresolved lot; otherwise fall back to
    the first unresolved lot in sequence, since the pointer can be stale.
    """
    if current_lot_id is not None:
        for index, lot in enumerate(ordered):
            if lot.id == current_lot_id and not lot.is_sold:
                return lot, index
    for index, lot in enumerate(ordered):
        if not lot.is_sold:
            return lot, index
    return None, -1
