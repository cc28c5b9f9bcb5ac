# src/fa_admin/api/router.py
"""Admin REST API. Every route requires an admin caller."""
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_admin.application.service import AdminService
from src.fa_clearing.domain.allocation import AllocationItem
from src.fa_common.database import get_db_session
from src.fa_common.response import ApiResponse, success_response
from src.fa_gateway.auth.dependencies import require_admin
from src.fa_gateway.manager.db_models import ManagerModel
from src.fa_league.application.schemas import CatalogUpsertRequest
from src.fa_league.application.service import LeagueApplicationService

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()
_league_service = LeagueApplicationService()


class StartAuctionRequest(BaseModel):
    phase: int = Field(1, ge=1, le=4)


class BidOnBehalfRequest(BaseModel):
    manager_id: str
    amount: int = Field(..., ge=1, description="Half-units")


class SellRequest(BaseModel):
    manager_id: str
    price: int = Field(..., ge=0, description="Half-units")


class AllocationEntry(BaseModel):
    player_id: int
    fee: int = Field(..., ge=1, description="Half-units")


class AllocateRequest(BaseModel):
    manager_id: str
    phase: int = Field(..., ge=1, le=4)
    allocations: list[AllocationEntry] = Field(..., min_length=1)


class AddBudgetRequest(BaseModel):
    amount: int = Field(..., ge=1, description="Thousandths, e.g. 10000 = £10m")


def _wrap(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/auction/start", status_code=status.HTTP_201_CREATED)
async def start_auction(
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: StartAuctionRequest | None = None,
) -> ApiResponse:
    phase = body.phase if body is not None else 1
    return _wrap(request, await _service.start_auction(phase, db))


@router.post("/auction/end")
async def end_auction(
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.end_auction(db))


@router.post("/auction/lots/{lot_id}/bids", status_code=status.HTTP_201_CREATED)
async def bid_on_behalf(
    lot_id: str,
    body: BidOnBehalfRequest,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.bid_on_behalf(lot_id, body.manager_id, body.amount, db))


@router.post("/auction/lots/{lot_id}/sell")
async def sell_lot(
    lot_id: str,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: Annotated[SellRequest | None, Body()] = None,
) -> ApiResponse:
    if body is None:
        result = await _service.sell_lot(lot_id, db)
    else:
        result = await _service.sell_lot(lot_id, db, manager_id=body.manager_id, price=body.price)
    return _wrap(request, result)


@router.post("/auction/lots/{lot_id}/unsold")
async def mark_unsold(
    lot_id: str,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.mark_unsold(lot_id, db))


@router.post("/auction/lots/{lot_id}/reopen")
async def reopen_lot(
    lot_id: str,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.reopen_lot(lot_id, db))


@router.post("/auction/lots/{lot_id}/skip")
async def skip_to_lot(
    lot_id: str,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.skip_to_lot(lot_id, db))


@router.post("/squads/allocate")
async def allocate_squad(
    body: AllocateRequest,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    items = [AllocationItem(player_id=a.player_id, fee=a.fee) for a in body.allocations]
    return _wrap(request, await _service.allocate_squad(body.manager_id, body.phase, items, db))


@router.put("/catalog")
async def upsert_catalog(
    body: CatalogUpsertRequest,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _league_service.upsert_catalog(db, body)
    return _wrap(request, result.model_dump())


@router.post("/managers/add-budget")
async def add_budget(
    body: AddBudgetRequest,
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.add_budget_to_all(body.amount, db))


@router.post("/reset")
async def reset_auction_data(
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.reset_auction_data(db))


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    admin: Annotated[ManagerModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return _wrap(request, await _service.verify_invariants(db))
