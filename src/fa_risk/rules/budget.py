"""Budget Calculator.

starting  = floor(starting_budget_thousandths / 500)
spent     = sum of sold prices of lots the manager won in the OPEN auction
remaining = starting - spent

Budgets are never decremented in storage; remaining is always derived.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_common.errors import InsufficientBudgetError
from src.fa_common.half_units import thousandths_to_half_units
from src.fa_league.domain.models import Manager


@dataclass(frozen=True)
class Budget:
    starting: int
    spent: int
    remaining: int


def compute_budget(starting_budget: int, spent: int) -> Budget:
    starting = thousandths_to_half_units(starting_budget)
    return Budget(starting=starting, spent=spent, remaining=starting - spent)


async def load_budget(
    manager: Manager, auctions: AuctionRepositoryProtocol, db: AsyncSession
) -> Budget:
    """Fresh budget read; spent is 0 when no auction is OPEN."""
    auction = await auctions.get_open_auction(db)
    spent = 0
    if auction is not None:
        spent = await auctions.sum_spent(db, auction.id, manager.id)
    return compute_budget(manager.starting_budget, spent)


def check_budget(manager: Manager, budget: Budget, amount: int) -> None:
    """Raise InsufficientBudgetError (2001) if amount exceeds the remaining budget."""
    if amount > budget.remaining:
        raise InsufficientBudgetError(manager.username, amount, budget.remaining)
