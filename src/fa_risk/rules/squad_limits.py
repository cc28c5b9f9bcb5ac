"""Squad Constraint Checker: roster size and per-position quotas."""

from collections import Counter
from collections.abc import Iterable

from src.fa_common.errors import (
    PositionLimitExceededError,
    SquadFullError,
    TooManyPlayersError,
)

MAX_SQUAD_SIZE = 11

POSITION_LIMITS: dict[str, int] = {"GK": 1, "DEF": 4, "MID": 5, "FWD": 3}


def check_squad_admission(
    username: str, current_positions: Iterable[str], candidate_position: str
) -> None:
    """Reject adding one player of ``candidate_position`` to the given roster.

    Size is checked before the position quota.
    """
    counts = Counter(current_positions)
    size = sum(counts.values())
    if size >= MAX_SQUAD_SIZE:
        raise SquadFullError(username, size, MAX_SQUAD_SIZE)
    limit = POSITION_LIMITS[candidate_position]
    held = counts.get(candidate_position, 0)
    if held >= limit:
        raise PositionLimitExceededError(candidate_position, held, limit)


def check_allocation_list(positions: list[str]) -> None:
    """Validate a complete replacement roster on its own (not merged with any existing squad)."""
    if len(positions) > MAX_SQUAD_SIZE:
        raise TooManyPlayersError(len(positions), MAX_SQUAD_SIZE)
    counts = Counter(positions)
    for position, limit in POSITION_LIMITS.items():
        if counts.get(position, 0) > limit:
            raise PositionLimitExceededError(position, counts[position], limit)


def roster_violations(positions: list[str]) -> list[str]:
    """Describe every cap a roster breaks, e.g. ['size: 12/11', 'GK: 2/1']."""
    violations: list[str] = []
    if len(positions) > MAX_SQUAD_SIZE:
        violations.append(f"size: {len(positions)}/{MAX_SQUAD_SIZE}")
    counts = Counter(positions)
    for position, limit in POSITION_LIMITS.items():
        if counts.get(position, 0) > limit:
            violations.append(f"{position}: {counts[position]}/{limit}")
    return violations
