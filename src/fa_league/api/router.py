"""fa_league REST endpoints.

GET /managers/me/budget  caller's budget
GET /managers/{manager_id}/budget  any manager's budget (admin, or self)
GET /managers/{manager_id}/squads/{phase}  squad view with fees
GET /players/{player_id}/owner?phase=  derived owner in a phase
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_common.database import get_db_session
from src.fa_common.errors import AdminRequiredError
from src.fa_common.response import ApiResponse, success_response
from src.fa_gateway.auth.dependencies import get_current_manager
from src.fa_gateway.manager.db_models import ManagerModel
from src.fa_league.application.service import LeagueApplicationService

router = APIRouter(tags=["league"])

_service = LeagueApplicationService()


@router.get("/managers/me/budget")
async def get_my_budget(
    request: Request,
    current_manager: Annotated[ManagerModel, Depends(get_current_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_budget(db, str(current_manager.id))
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/managers/{manager_id}/budget")
async def get_manager_budget(
    manager_id: str,
    request: Request,
    current_manager: Annotated[ManagerModel, Depends(get_current_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    if not current_manager.is_admin and str(current_manager.id) != manager_id:
        raise AdminRequiredError()
    result = await _service.get_budget(db, manager_id)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/managers/{manager_id}/squads/{phase}")
async def get_squad(
    manager_id: str,
    request: Request,
    current_manager: Annotated[ManagerModel, Depends(get_current_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    phase: int = Path(..., ge=1, le=4),
) -> ApiResponse:
    result = await _service.get_squad(db, manager_id, phase)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/players/{player_id}/owner")
async def get_player_owner(
    player_id: int,
    request: Request,
    current_manager: Annotated[ManagerModel, Depends(get_current_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    phase: int = Query(1, ge=1, le=4),
) -> ApiResponse:
    result = await _service.get_owner(db, player_id, phase)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
