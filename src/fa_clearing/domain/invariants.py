"""Ledger-wide audit: budget conservation, roster caps, one owner per phase,
sold lots backed by squad rows."""

import logging
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.domain.repository import AuctionRepositoryProtocol
from src.fa_common.half_units import half_units_to_display
from src.fa_league.domain.repository import LeagueRepositoryProtocol
from src.fa_risk.rules.budget import compute_budget
from src.fa_risk.rules.squad_limits import roster_violations

logger = logging.getLogger(__name__)


async def verify_ledger_invariants(
    league: LeagueRepositoryProtocol,
    auctions: AuctionRepositoryProtocol,
    db: AsyncSession,
) -> list[str]:
    """Returns list of violation strings (empty when consistent)."""
    violations: list[str] = []

    # Budget: spent never exceeds starting budget
    auction = await auctions.get_open_auction(db)
    spent_map = await auctions.spent_by_manager(db, auction.id) if auction else {}
    managers = {m.id: m for m in await league.list_managers(db)}
    for manager in managers.values():
        budget = compute_budget(manager.starting_budget, spent_map.get(manager.id, 0))
        if budget.spent > budget.starting:
            violations.append(
                f"budget: {manager.username} spent {half_units_to_display(budget.spent)}"
                f" > starting {half_units_to_display(budget.starting)}"
            )
    for winner_id in spent_map:
        if winner_id not in managers:
            violations.append(f"budget: sold lots won by unknown manager {winner_id}")

    # Rosters: caps per squad, one owner per player per phase
    slots = await league.list_squad_slots(db)
    rosters: dict[tuple[str, str, int], list[str]] = defaultdict(list)
    holders: dict[tuple[int, int], set[str]] = defaultdict(set)
    for slot in slots:
        rosters[(slot.manager_id, slot.username, slot.phase)].append(slot.position)
        holders[(slot.player_id, slot.phase)].add(slot.username)
    for (_, username, phase), positions in rosters.items():
        for problem in roster_violations(positions):
            violations.append(f"roster: {username} phase {phase} {problem}")
    for (player_id, phase), names in holders.items():
        if len(names) > 1:
            violations.append(
                f"ownership: player {player_id} held by {sorted(names)} in phase {phase}"
            )

    # Every sold lot, auction or allocation, is backed by a row in the winner's squad
    if auction is not None:
        held = {(slot.manager_id, slot.phase, slot.player_id) for slot in slots}
        for lot in await auctions.list_sold_lots(db, auction.id):
            if lot.winner_id is None or lot.winner_id not in managers:
                continue
            winner = managers[lot.winner_id]
            if (winner.id, lot.squad_phase, lot.player_id) not in held:
                violations.append(
                    f"squad: lot {lot.id} sold to {winner.username} but player "
                    f"{lot.player_id} is not in their phase {lot.squad_phase} squad"
                )

    for msg in violations:
        logger.error(msg)
    return violations
