"""Domain models for fa_league: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Manager:
    id: str
    username: str
    display_name: str | None
    is_admin: bool
    starting_budget: int  # thousandths
    created_at: datetime | None = None


@dataclass
class Team:
    id: int
    name: str
    short_name: str


@dataclass
class Player:
    id: int
    first_name: str
    second_name: str
    web_name: str
    position: str
    list_price: int  # half-units
    team_id: int | None = None
    team_short_name: str | None = None


@dataclass
class Squad:
    id: str
    manager_id: str
    phase: int
    total_points: int = 0


@dataclass
class SquadPlayer:
    """A squad row joined with its player; lot_sold_price backs the fee fallback."""

    squad_id: str
    player_id: int
    web_name: str
    position: str
    fee_paid: int
    team_short_name: str | None = None
    lot_sold_price: int | None = None


@dataclass
class PhaseOwner:
    """Derived ownership: who holds a player in one phase."""

    player_id: int
    phase: int
    manager_id: str
    username: str


@dataclass
class SquadSlot:
    """One occupied slot across all squads, used by the roster audit."""

    manager_id: str
    username: str
    phase: int
    player_id: int
    position: str
