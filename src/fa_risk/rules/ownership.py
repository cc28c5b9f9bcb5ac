"""Cross-manager uniqueness: one owner per player per phase."""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_common.errors import DuplicatePlayerError, OwnedByOtherManagerError
from src.fa_league.domain.repository import LeagueRepositoryProtocol


async def check_not_owned(
    manager_id: str,
    player_ids: Sequence[int],
    phase: int,
    league: LeagueRepositoryProtocol,
    db: AsyncSession,
    allow_self: bool = False,
) -> None:
    """Raise if any player is already in a phase squad.

    Another manager's squad -> OwnedByOtherManagerError (5003).
    The same manager's squad -> DuplicatePlayerError (5006), unless allow_self
    (bulk allocation replaces the caller's own squad, so self-held is fine).
    """
    owners = await league.find_phase_owners(db, player_ids, phase)
    for player_id in player_ids:
        owner = owners.get(player_id)
        if owner is None:
            continue
        if owner.manager_id != manager_id:
            raise OwnedByOtherManagerError(player_id, owner.username, phase)
        if not allow_self:
            raise DuplicatePlayerError(player_id)
