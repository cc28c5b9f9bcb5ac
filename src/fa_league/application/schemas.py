"""Pydantic schemas for fa_league API requests and responses.

Money fields are integer half-units with a parallel *_display string
('£5.5m'); starting_budget on input/output of admin tools is thousandths.
"""

from pydantic import BaseModel, Field

from src.fa_common.enums import Position
from src.fa_common.half_units import half_units_to_display
from src.fa_league.domain.models import Manager, PhaseOwner, Player, Squad, SquadPlayer, Team
from src.fa_risk.rules.budget import Budget

# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------


class BudgetResponse(BaseModel):
    manager_id: str
    username: str
    starting: int
    spent: int
    remaining: int
    starting_display: str
    spent_display: str
    remaining_display: str

    @classmethod
    def from_budget(cls, manager: Manager, budget: Budget) -> "BudgetResponse":
        return cls(
            manager_id=manager.id,
            username=manager.username,
            starting=budget.starting,
            spent=budget.spent,
            remaining=budget.remaining,
            starting_display=half_units_to_display(budget.starting),
            spent_display=half_units_to_display(budget.spent),
            remaining_display=half_units_to_display(budget.remaining),
        )


# ---------------------------------------------------------------------------
# Squad
# ---------------------------------------------------------------------------


def effective_fee(row: SquadPlayer) -> int:
    """Squad fee, falling back to the won lot's sold price when the row carries 0."""
    if row.fee_paid:
        return row.fee_paid
    return row.lot_sold_price or 0


class SquadPlayerItem(BaseModel):
    player_id: int
    web_name: str
    position: str
    team: str | None
    fee_paid: int
    fee_display: str


class SquadResponse(BaseModel):
    manager_id: str
    username: str
    phase: int
    total_points: int
    player_count: int
    position_counts: dict[str, int]
    total_fee: int
    total_fee_display: str
    players: list[SquadPlayerItem]

    @classmethod
    def from_rows(
        cls, manager: Manager, phase: int, squad: Squad | None, rows: list[SquadPlayer]
    ) -> "SquadResponse":
        items = [
            SquadPlayerItem(
                player_id=r.player_id,
                web_name=r.web_name,
                position=r.position,
                team=r.team_short_name,
                fee_paid=effective_fee(r),
                fee_display=half_units_to_display(effective_fee(r)),
            )
            for r in rows
        ]
        counts = {p.value: 0 for p in Position}
        for item in items:
            counts[item.position] = counts.get(item.position, 0) + 1
        total = sum(i.fee_paid for i in items)
        return cls(
            manager_id=manager.id,
            username=manager.username,
            phase=phase,
            total_points=squad.total_points if squad else 0,
            player_count=len(items),
            position_counts=counts,
            total_fee=total,
            total_fee_display=half_units_to_display(total),
            players=items,
        )


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------


class OwnerResponse(BaseModel):
    player_id: int
    phase: int
    owner_id: str | None
    owner_username: str | None

    @classmethod
    def from_owner(cls, player_id: int, phase: int, owner: PhaseOwner | None) -> "OwnerResponse":
        return cls(
            player_id=player_id,
            phase=phase,
            owner_id=owner.manager_id if owner else None,
            owner_username=owner.username if owner else None,
        )


# ---------------------------------------------------------------------------
# Catalog upsert
# ---------------------------------------------------------------------------


class TeamIn(BaseModel):
    id: int
    name: str = Field(..., min_length=1, max_length=128)
    short_name: str = Field(..., min_length=1, max_length=8)

    def to_domain(self) -> Team:
        return Team(id=self.id, name=self.name, short_name=self.short_name)


class PlayerIn(BaseModel):
    id: int
    first_name: str = Field(..., max_length=128)
    second_name: str = Field(..., max_length=128)
    web_name: str = Field(..., min_length=1, max_length=128)
    position: Position
    list_price: int = Field(..., ge=0, description="Half-units")
    team_id: int | None = None

    def to_domain(self) -> Player:
        return Player(
            id=self.id,
            first_name=self.first_name,
            second_name=self.second_name,
            web_name=self.web_name,
            position=self.position.value,
            list_price=self.list_price,
            team_id=self.team_id,
        )


class CatalogUpsertRequest(BaseModel):
    teams: list[TeamIn] = Field(default_factory=list)
    players: list[PlayerIn] = Field(default_factory=list)


class CatalogUpsertResponse(BaseModel):
    teams_upserted: int
    players_upserted: int
