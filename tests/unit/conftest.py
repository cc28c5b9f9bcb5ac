"""In-memory ledger for unit tests.

FakeLeagueRepository and FakeAuctionRepository conform to the repository
Protocols and share one FakeStore. FakeSession checkpoints the store on
commit and restores it on rollback, so a rejected engine operation leaves
the store exactly as it was.
"""

import copy
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import pytest

from src.fa_auction.domain.models import Auction, AuctionLot, Bid, SequencedLot
from src.fa_common.enums import AuctionStatus, LotSource
from src.fa_engine.engine import AuctionEngine
from src.fa_league.domain.models import (
    Manager,
    PhaseOwner,
    Player,
    Squad,
    SquadPlayer,
    SquadSlot,
    Team,
)


class FakeStore:
    def __init__(self) -> None:
        self.managers: dict[str, Manager] = {}
        self.teams: dict[int, Team] = {}
        self.players: dict[int, Player] = {}
        self.squads: dict[str, Squad] = {}
        self.squad_players: dict[tuple[str, int], int] = {}  # (squad_id, player_id) -> fee
        self.auctions: dict[str, Auction] = {}
        self.lots: dict[str, AuctionLot] = {}
        self.bids: list[Bid] = []
        self.seq = 0
        self._committed: dict[str, Any] = {}
        self.checkpoint()

    def next_id(self, prefix: str) -> str:
        self.seq += 1
        return f"{prefix}-{self.seq}"

    def checkpoint(self) -> None:
        """Record the current state as committed."""
        self._committed = copy.deepcopy(
            {k: v for k, v in self.__dict__.items() if k != "_committed"}
        )

    def restore(self) -> None:
        """Discard everything since the last checkpoint."""
        self.__dict__.update(copy.deepcopy(self._committed))

    # --- seeding helpers ---

    def add_manager(
        self,
        username: str,
        starting_budget: int = 150_000,
        is_admin: bool = False,
    ) -> Manager:
        manager = Manager(
            id=f"mgr-{username}",
            username=username,
            display_name=username,
            is_admin=is_admin,
            starting_budget=starting_budget,
        )
        self.managers[manager.id] = manager
        self.checkpoint()
        return manager

    def add_player(
        self,
        player_id: int,
        position: str,
        list_price: int = 10,
        first_name: str = "",
        second_name: str = "",
    ) -> Player:
        player = Player(
            id=player_id,
            first_name=first_name or f"First{player_id}",
            second_name=second_name or f"Second{player_id}",
            web_name=second_name or f"Player{player_id}",
            position=position,
            list_price=list_price,
        )
        self.players[player.id] = player
        self.checkpoint()
        return player

    def squad_of(self, manager_id: str, phase: int) -> Squad | None:
        for squad in self.squads.values():
            if squad.manager_id == manager_id and squad.phase == phase:
                return squad
        return None

    def squad_player_ids(self, manager_id: str, phase: int) -> list[int]:
        squad = self.squad_of(manager_id, phase)
        if squad is None:
            return []
        return sorted(pid for (sid, pid) in self.squad_players if sid == squad.id)


class FakeSession:
    """Stands in for AsyncSession: commit checkpoints the store, rollback restores it."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self._store.checkpoint()
        self.commits += 1

    async def rollback(self) -> None:
        self._store.restore()
        self.rollbacks += 1


class FakeLeagueRepository:
    def __init__(self, store: FakeStore) -> None:
        self._s = store

    async def get_manager(
        self, db: Any, manager_id: str, for_update: bool = False
    ) -> Manager | None:
        manager = self._s.managers.get(manager_id)
        return replace(manager) if manager else None

    async def list_managers(self, db: Any) -> list[Manager]:
        return sorted(self._s.managers.values(), key=lambda m: m.username)

    async def add_budget_to_all(self, db: Any, amount: int) -> int:
        updated = 0
        for manager in self._s.managers.values():
            if not manager.is_admin:
                manager.starting_budget += amount
                updated += 1
        return updated

    async def reset_budgets(self, db: Any, amount: int) -> int:
        updated = 0
        for manager in self._s.managers.values():
            if not manager.is_admin:
                manager.starting_budget = amount
                updated += 1
        return updated

    async def get_player(self, db: Any, player_id: int) -> Player | None:
        return self._s.players.get(player_id)

    async def list_players(self, db: Any) -> list[Player]:
        return sorted(self._s.players.values(), key=lambda p: p.id)

    async def get_players(self, db: Any, player_ids: Any) -> dict[int, Player]:
        return {pid: self._s.players[pid] for pid in player_ids if pid in self._s.players}

    async def upsert_teams(self, db: Any, teams: Any) -> int:
        for team in teams:
            self._s.teams[team.id] = team
        return len(teams)

    async def upsert_players(self, db: Any, players: Any) -> int:
        for player in players:
            self._s.players[player.id] = player
        return len(players)

    async def get_squad(self, db: Any, manager_id: str, phase: int) -> Squad | None:
        return self._s.squad_of(manager_id, phase)

    async def get_or_create_squad(self, db: Any, manager_id: str, phase: int) -> Squad:
        squad = self._s.squad_of(manager_id, phase)
        if squad is None:
            squad = Squad(id=self._s.next_id("squad"), manager_id=manager_id, phase=phase)
            self._s.squads[squad.id] = squad
        return squad

    async def list_squad_players(
        self, db: Any, manager_id: str, phase: int
    ) -> list[SquadPlayer]:
        squad = self._s.squad_of(manager_id, phase)
        if squad is None:
            return []
        rows = []
        for (sid, pid), fee in self._s.squad_players.items():
            if sid != squad.id:
                continue
            player = self._s.players[pid]
            sold = next(
                (
                    lot.sold_price for lot in self._s.lots.values()
                    if lot.player_id == pid and lot.winner_id == manager_id
                    and lot.is_sold and lot.source == LotSource.AUCTION.value
                ),
                None,
            )
            rows.append(
                SquadPlayer(
                    squad_id=sid,
                    player_id=pid,
                    web_name=player.web_name,
                    position=player.position,
                    fee_paid=fee,
                    team_short_name=player.team_short_name,
                    lot_sold_price=sold,
                )
            )
        return sorted(rows, key=lambda r: r.player_id)

    async def squad_positions(self, db: Any, manager_id: str, phase: int) -> list[str]:
        return [
            self._s.players[pid].position
            for pid in self._s.squad_player_ids(manager_id, phase)
        ]

    async def add_squad_player(
        self, db: Any, squad_id: str, player_id: int, fee_paid: int
    ) -> None:
        if (squad_id, player_id) in self._s.squad_players:
            raise ValueError(f"duplicate squad row {squad_id}/{player_id}")
        self._s.squad_players[(squad_id, player_id)] = fee_paid

    async def remove_squad_player(
        self, db: Any, manager_id: str, phase: int, player_id: int
    ) -> bool:
        squad = self._s.squad_of(manager_id, phase)
        if squad is None:
            return False
        return self._s.squad_players.pop((squad.id, player_id), None) is not None

    async def clear_squad(self, db: Any, manager_id: str, phase: int) -> list[int]:
        squad = self._s.squad_of(manager_id, phase)
        if squad is None:
            return []
        removed = self._s.squad_player_ids(manager_id, phase)
        for pid in removed:
            del self._s.squad_players[(squad.id, pid)]
        return removed

    async def find_phase_owners(
        self, db: Any, player_ids: Any, phase: int
    ) -> dict[int, PhaseOwner]:
        wanted = set(player_ids)
        owners: dict[int, PhaseOwner] = {}
        for (sid, pid) in self._s.squad_players:
            squad = self._s.squads[sid]
            if pid in wanted and squad.phase == phase:
                manager = self._s.managers[squad.manager_id]
                owners[pid] = PhaseOwner(pid, phase, manager.id, manager.username)
        return owners

    async def list_squad_slots(self, db: Any) -> list[SquadSlot]:
        slots = []
        for (sid, pid) in self._s.squad_players:
            squad = self._s.squads[sid]
            manager = self._s.managers[squad.manager_id]
            slots.append(
                SquadSlot(manager.id, manager.username, squad.phase, pid,
                          self._s.players[pid].position)
            )
        return slots

    async def reset_squads(self, db: Any) -> None:
        self._s.squad_players.clear()
        self._s.squads.clear()


class FakeAuctionRepository:
    def __init__(self, store: FakeStore) -> None:
        self._s = store

    async def get_open_auction(self, db: Any, for_update: bool = False) -> Auction | None:
        for auction in self._s.auctions.values():
            if auction.status == AuctionStatus.OPEN.value:
                return replace(auction)
        return None

    async def get_auction(
        self, db: Any, auction_id: str, for_update: bool = False
    ) -> Auction | None:
        auction = self._s.auctions.get(auction_id)
        return replace(auction) if auction else None

    async def create_auction(self, db: Any, auction_id: str, phase: int) -> Auction:
        auction = Auction(
            id=auction_id,
            status=AuctionStatus.OPEN.value,
            phase=phase,
            current_lot_id=None,
            created_at=datetime.now(UTC),
        )
        self._s.auctions[auction_id] = auction
        return replace(auction)

    async def set_status(self, db: Any, auction_id: str, status: str) -> None:
        auction = self._s.auctions[auction_id]
        auction.status = status
        auction.closed_at = datetime.now(UTC) if status == AuctionStatus.CLOSED.value else None

    async def set_current_lot(self, db: Any, auction_id: str, lot_id: str | None) -> None:
        self._s.auctions[auction_id].current_lot_id = lot_id

    async def insert_lots(self, db: Any, lots: Any) -> int:
        for lot in lots:
            self._s.lots[lot.id] = replace(lot)
        return len(lots)

    async def get_lot(self, db: Any, lot_id: str, for_update: bool = False) -> AuctionLot | None:
        lot = self._s.lots.get(lot_id)
        return replace(lot) if lot else None

    async def list_sequenced_lots(self, db: Any, auction_id: str) -> list[SequencedLot]:
        rows = []
        for lot in self._s.lots.values():
            if lot.auction_id != auction_id or lot.source != LotSource.AUCTION.value:
                continue
            player = self._s.players[lot.player_id]
            winner = self._s.managers.get(lot.winner_id) if lot.winner_id else None
            rows.append(
                SequencedLot(
                    id=lot.id,
                    auction_id=lot.auction_id,
                    player_id=lot.player_id,
                    position=player.position,
                    list_price=player.list_price,
                    first_name=player.first_name,
                    second_name=player.second_name,
                    web_name=player.web_name,
                    is_sold=lot.is_sold,
                    sold_price=lot.sold_price,
                    winner_id=lot.winner_id,
                    winner_username=winner.username if winner else None,
                    team_short_name=player.team_short_name,
                )
            )
        # Storage order is arbitrary; callers must sort
        return list(reversed(rows))

    async def mark_resolved(
        self, db: Any, lot_id: str, winner_id: str | None, price: int
    ) -> None:
        lot = self._s.lots[lot_id]
        lot.is_sold = True
        lot.sold_price = price
        lot.winner_id = winner_id
        lot.resolved_at = datetime.now(UTC)

    async def clear_resolution(self, db: Any, lot_id: str) -> None:
        lot = self._s.lots[lot_id]
        lot.is_sold = False
        lot.sold_price = None
        lot.winner_id = None
        lot.resolved_at = None

    async def list_sold_lots(self, db: Any, auction_id: str) -> list[AuctionLot]:
        return [
            replace(lot) for lot in self._s.lots.values()
            if lot.auction_id == auction_id and lot.is_sold and lot.winner_id is not None
        ]

    async def has_allocation_lot(
        self, db: Any, manager_id: str, squad_phase: int, player_id: int
    ) -> bool:
        return any(
            lot.winner_id == manager_id and lot.squad_phase == squad_phase
            and lot.player_id == player_id and lot.is_sold
            and lot.source == LotSource.ALLOCATION.value
            for lot in self._s.lots.values()
        )

    async def delete_allocation_lots(
        self, db: Any, auction_id: str, manager_id: str, squad_phase: int
    ) -> int:
        doomed = [
            lot.id for lot in self._s.lots.values()
            if lot.auction_id == auction_id and lot.winner_id == manager_id
            and lot.squad_phase == squad_phase and lot.source == LotSource.ALLOCATION.value
        ]
        for lot_id in doomed:
            del self._s.lots[lot_id]
        return len(doomed)

    async def get_leading_bid(self, db: Any, lot_id: str) -> Bid | None:
        best: Bid | None = None
        for bid in self._s.bids:
            if bid.lot_id == lot_id and (best is None or bid.amount > best.amount):
                best = bid
        return replace(best) if best else None

    async def insert_bid(self, db: Any, bid: Bid) -> None:
        self._s.bids.append(replace(bid))

    async def delete_bids(self, db: Any, lot_id: str) -> int:
        before = len(self._s.bids)
        self._s.bids = [b for b in self._s.bids if b.lot_id != lot_id]
        return before - len(self._s.bids)

    async def list_bids(self, db: Any, auction_id: str) -> list[Bid]:
        return [
            replace(b) for b in self._s.bids
            if self._s.lots[b.lot_id].auction_id == auction_id
        ]

    async def sum_spent(self, db: Any, auction_id: str, manager_id: str) -> int:
        return sum(
            lot.sold_price or 0 for lot in self._s.lots.values()
            if lot.auction_id == auction_id and lot.winner_id == manager_id and lot.is_sold
        )

    async def spent_by_manager(self, db: Any, auction_id: str) -> dict[str, int]:
        spent: dict[str, int] = {}
        for lot in self._s.lots.values():
            if lot.auction_id == auction_id and lot.is_sold and lot.winner_id is not None:
                spent[lot.winner_id] = spent.get(lot.winner_id, 0) + (lot.sold_price or 0)
        return spent

    async def reset_all(self, db: Any) -> None:
        self._s.bids.clear()
        self._s.lots.clear()
        self._s.auctions.clear()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def league(store: FakeStore) -> FakeLeagueRepository:
    return FakeLeagueRepository(store)


@pytest.fixture
def auctions(store: FakeStore) -> FakeAuctionRepository:
    return FakeAuctionRepository(store)


@pytest.fixture
def db(store: FakeStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def engine(league: FakeLeagueRepository, auctions: FakeAuctionRepository) -> AuctionEngine:
    return AuctionEngine(league, auctions)


@pytest.fixture
def catalog(store: FakeStore) -> FakeStore:
    """Fifteen players: 2 GK, 5 DEF, 5 MID, 3 FWD, enough to overflow every quota."""
    store.add_player(1, "GK", 11, "Alisson", "Becker")
    store.add_player(2, "GK", 9, "David", "Raya")
    for i, price in enumerate([13, 12, 11, 10, 9]):
        store.add_player(10 + i, "DEF", price)
    for i, price in enumerate([25, 20, 15, 12, 10]):
        store.add_player(20 + i, "MID", price)
    for i, price in enumerate([30, 18, 14]):
        store.add_player(30 + i, "FWD", price)
    return store
