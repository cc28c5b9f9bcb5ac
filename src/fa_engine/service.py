# src/fa_engine/service.py
from src.fa_auction.infrastructure.persistence import AuctionRepository
from src.fa_engine.engine import AuctionEngine
from src.fa_league.infrastructure.persistence import LeagueRepository

_engine: AuctionEngine | None = None


def get_auction_engine() -> AuctionEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = AuctionEngine(LeagueRepository(), AuctionRepository())
    return _engine
