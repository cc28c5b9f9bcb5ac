"""Unit tests for AuctionEngine lifecycle, bidding and resolution rules."""

import asyncio

import pytest

from src.fa_common.enums import ResolveMode
from src.fa_common.errors import (
    AuctionAlreadyOpenError,
    AuctionNotOpenError,
    BidTooLowError,
    InsufficientBudgetError,
    LotAlreadySoldError,
    LotNotFoundError,
    LotNotResolvedError,
    ManagerNotFoundError,
    NoOpenAuctionError,
    OwnedByOtherManagerError,
)


@pytest.fixture
def league_setup(catalog):
    catalog.add_manager("ManagerA")
    catalog.add_manager("ManagerB")
    catalog.add_manager("Skint", starting_budget=10_000)  # £10.0m = 20 half-units
    return catalog


class TestStartAndEnd:
    async def test_start_seeds_one_lot_per_player_in_sequence(
        self, engine, db, league_setup
    ) -> None:
        auction, lots = await engine.start_auction(2, db)

        assert auction.phase == 2
        assert len(lots) == 15
        assert lots[0].player_id == 1  # priciest keeper first
        assert lots[-1].player_id == 32  # cheapest forward last
        assert auction.current_lot_id == lots[0].id
        assert db.commits == 1

    async def test_second_start_rejected(self, engine, db, league_setup) -> None:
        await engine.start_auction(1, db)
        with pytest.raises(AuctionAlreadyOpenError):
            await engine.start_auction(1, db)

    async def test_start_with_empty_catalog(self, engine, db) -> None:
        auction, lots = await engine.start_auction(1, db)
        assert lots == []
        assert auction.current_lot_id is None

    async def test_end_without_open_auction(self, engine, db) -> None:
        with pytest.raises(NoOpenAuctionError):
            await engine.end_auction(db)

    async def test_end_keeps_lots_and_squads(self, engine, db, store, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.resolve_lot(lots[0].id, ResolveMode.MANUAL, db,
                                 manager_id="mgr-ManagerA", price=11)

        auction = await engine.end_auction(db)

        assert auction.status == "CLOSED"
        assert len(store.lots) == 15
        assert store.squad_player_ids("mgr-ManagerA", 1) == [1]

    async def test_bids_rejected_after_end(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.end_auction(db)
        with pytest.raises(AuctionNotOpenError):
            await engine.place_bid(lots[1].id, "mgr-ManagerA", 5, db)


class TestSkip:
    async def test_skip_repoints_without_touching_sale_state(
        self, engine, db, store, league_setup
    ) -> None:
        _, lots = await engine.start_auction(1, db)
        auction = await engine.skip_to_lot(lots[7].id, db)
        assert auction.current_lot_id == lots[7].id
        assert not any(lot.is_sold for lot in store.lots.values())

    async def test_skip_reopens_closed_auction(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.end_auction(db)
        auction = await engine.skip_to_lot(lots[3].id, db)
        assert auction.status == "OPEN"

    async def test_skip_unknown_lot(self, engine, db) -> None:
        with pytest.raises(LotNotFoundError):
            await engine.skip_to_lot("missing", db)

    async def test_skip_into_old_auction_while_another_is_open(
        self, engine, db, league_setup
    ) -> None:
        _, old_lots = await engine.start_auction(1, db)
        await engine.end_auction(db)
        await engine.start_auction(1, db)
        with pytest.raises(AuctionAlreadyOpenError):
            await engine.skip_to_lot(old_lots[0].id, db)


class TestBidding:
    async def test_bids_must_strictly_increase(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.place_bid(lots[0].id, "mgr-ManagerA", 5, db)
        with pytest.raises(BidTooLowError):
            await engine.place_bid(lots[0].id, "mgr-ManagerB", 5, db)
        bid = await engine.place_bid(lots[0].id, "mgr-ManagerB", 6, db)
        assert bid.manager_username == "ManagerB"

    async def test_bid_below_list_price_is_allowed(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        bid = await engine.place_bid(lots[0].id, "mgr-ManagerA", 1, db)
        assert bid.amount == 1

    async def test_bid_on_resolved_lot(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.resolve_lot(lots[0].id, ResolveMode.UNSOLD, db)
        with pytest.raises(LotAlreadySoldError):
            await engine.place_bid(lots[0].id, "mgr-ManagerA", 5, db)

    async def test_unknown_lot(self, engine, db) -> None:
        with pytest.raises(LotNotFoundError):
            await engine.place_bid("missing", "mgr-ManagerA", 5, db)

    async def test_unknown_manager(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        with pytest.raises(ManagerNotFoundError):
            await engine.place_bid(lots[0].id, "mgr-nobody", 5, db)

    async def test_bid_on_player_owned_by_someone_else(
        self, engine, db, store, league_setup
    ) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.resolve_lot(lots[0].id, ResolveMode.MANUAL, db,
                                 manager_id="mgr-ManagerA", price=11)
        await engine.reopen_lot(lots[0].id, db)
        squad = await engine._league.get_or_create_squad(db, "mgr-ManagerA", 1)
        await engine._league.add_squad_player(db, squad.id, 1, 11)
        with pytest.raises(OwnedByOtherManagerError):
            await engine.place_bid(lots[0].id, "mgr-ManagerB", 12, db)

    async def test_concurrent_equal_bids_serialize(self, engine, db, store, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        results = await asyncio.gather(
            engine.place_bid(lots[0].id, "mgr-ManagerA", 8, db),
            engine.place_bid(lots[0].id, "mgr-ManagerB", 8, db),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], BidTooLowError)
        assert len(store.bids) == 1

    async def test_lock_is_scoped_to_the_auction(self, engine, db, league_setup) -> None:
        auction, lots = await engine.start_auction(1, db)
        await engine.place_bid(lots[0].id, "mgr-ManagerA", 3, db)
        assert auction.id in engine._auction_locks
        assert engine._get_or_create_lock(auction.id) is engine._get_or_create_lock(auction.id)


class TestResolution:
    async def test_auto_without_bids_is_unsold(self, engine, db, store, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        outcome = await engine.resolve_lot(lots[0].id, ResolveMode.AUTO, db)
        assert outcome.sold is False
        assert store.lots[lots[0].id].sold_price == 0
        assert outcome.next_lot_id == lots[1].id

    async def test_second_resolution_rejected(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.resolve_lot(lots[0].id, ResolveMode.UNSOLD, db)
        with pytest.raises(LotAlreadySoldError):
            await engine.resolve_lot(lots[0].id, ResolveMode.AUTO, db)

    async def test_auto_revalidates_budget_of_leading_bidder(
        self, engine, db, store, league_setup
    ) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.place_bid(lots[0].id, "mgr-Skint", 15, db)
        await engine.place_bid(lots[2].id, "mgr-Skint", 15, db)
        await engine.resolve_lot(lots[0].id, ResolveMode.AUTO, db)

        with pytest.raises(InsufficientBudgetError):
            await engine.resolve_lot(lots[2].id, ResolveMode.AUTO, db)

        assert store.lots[lots[2].id].is_sold is False
        assert len([b for b in store.bids if b.lot_id == lots[2].id]) == 1

    async def test_manual_sale_to_unknown_manager(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        with pytest.raises(ManagerNotFoundError):
            await engine.resolve_lot(lots[0].id, ResolveMode.MANUAL, db,
                                     manager_id="mgr-nobody", price=20)

    async def test_manual_sale_discards_live_bids(self, engine, db, store, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.place_bid(lots[0].id, "mgr-ManagerB", 30, db)
        outcome = await engine.resolve_lot(lots[0].id, ResolveMode.MANUAL, db,
                                           manager_id="mgr-ManagerA", price=11)
        assert outcome.winner_id == "mgr-ManagerA"
        assert store.bids == []

    async def test_resolving_last_lot_clears_pointer(self, engine, db, store, league_setup) -> None:
        auction, lots = await engine.start_auction(1, db)
        outcome = await engine.resolve_lot(lots[-1].id, ResolveMode.UNSOLD, db)
        assert outcome.next_lot_id is None
        assert store.auctions[auction.id].current_lot_id is None


class TestReopen:
    async def test_reopen_unresolved_lot(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        with pytest.raises(LotNotResolvedError):
            await engine.reopen_lot(lots[0].id, db)

    async def test_reopen_unsold_lot_makes_it_biddable(self, engine, db, league_setup) -> None:
        _, lots = await engine.start_auction(1, db)
        await engine.resolve_lot(lots[0].id, ResolveMode.UNSOLD, db)
        outcome = await engine.reopen_lot(lots[0].id, db)
        assert outcome.previous_winner_id is None
        assert outcome.refunded == 0
        bid = await engine.place_bid(lots[0].id, "mgr-ManagerA", 2, db)
        assert bid.lot_id == lots[0].id

    async def test_reopen_after_end_reopens_auction(self, engine, db, store, league_setup) -> None:
        auction, lots = await engine.start_auction(1, db)
        await engine.resolve_lot(lots[0].id, ResolveMode.MANUAL, db,
                                 manager_id="mgr-ManagerA", price=11)
        await engine.end_auction(db)

        outcome = await engine.reopen_lot(lots[0].id, db)

        assert outcome.auction_reopened is True
        assert store.auctions[auction.id].status == "OPEN"
        assert store.auctions[auction.id].closed_at is None

    async def test_reopen_allocation_lot_is_not_found(self, engine, db, store, league_setup) -> None:
        from src.fa_clearing.domain.allocation import AllocationItem

        await engine.start_auction(1, db)
        await engine.allocate_phase_squad("mgr-ManagerA", 2, [AllocationItem(1, 5)], db)
        allocation_lot = next(
            lot.id for lot in store.lots.values() if lot.source == "ALLOCATION"
        )
        with pytest.raises(LotNotFoundError):
            await engine.reopen_lot(allocation_lot, db)
