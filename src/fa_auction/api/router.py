"""fa_auction REST endpoints.

GET  /auction/current  open auction, ordered lots, current lot
POST /auction/lots/{lot_id}/bids  place a bid as the caller
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_auction.application.schemas import (
    AuctionStateResponse,
    BidResponse,
    PlaceBidRequest,
)
from src.fa_auction.application.service import AuctionApplicationService
from src.fa_common.database import get_db_session
from src.fa_common.response import ApiResponse, success_response
from src.fa_engine.service import get_auction_engine
from src.fa_gateway.auth.dependencies import get_current_manager
from src.fa_gateway.manager.db_models import ManagerModel

router = APIRouter(prefix="/auction", tags=["auction"])

_service = AuctionApplicationService()


@router.get("/current")
async def get_current_auction(
    request: Request,
    current_manager: Annotated[ManagerModel, Depends(get_current_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    state = await _service.get_current_state(db)
    resp = success_response(AuctionStateResponse.from_domain(state).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/lots/{lot_id}/bids", status_code=status.HTTP_201_CREATED)
async def place_bid(
    lot_id: str,
    body: PlaceBidRequest,
    request: Request,
    current_manager: Annotated[ManagerModel, Depends(get_current_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    engine = get_auction_engine()
    bid = await engine.place_bid(lot_id, str(current_manager.id), body.amount, db)
    resp = success_response(BidResponse.from_domain(bid).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
