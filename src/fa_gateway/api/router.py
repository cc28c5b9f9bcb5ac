"""Auth API router: register, login, refresh.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fa_common.database import get_db_session
from src.fa_common.response import ApiResponse, success_response
from src.fa_gateway.manager.schemas import (
    LoginRequest,
    LoginResponse,
    ManagerInfo,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from src.fa_gateway.manager.service import ManagerService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = ManagerService()


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Manager registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    async with db.begin():
        manager = await _service.register(
            body.username, body.password, db, display_name=body.display_name
        )

    data = RegisterResponse(
        manager_id=str(manager.id),
        username=manager.username,
        display_name=manager.display_name,
        is_admin=manager.is_admin,
        starting_budget=manager.starting_budget,
        created_at=manager.created_at.isoformat(),
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Manager registered successfully"
    return resp


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Manager login",
)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    manager, access_token, refresh_token = await _service.login(
        body.username, body.password, db
    )

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="Bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        manager=ManagerInfo(
            manager_id=str(manager.id),
            username=manager.username,
            is_admin=manager.is_admin,
        ),
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Login successful"
    return resp


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Refresh access token",
)
async def refresh_token(
    request: Request,
    body: RefreshRequest,
) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token)

    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Token refreshed"
    return resp
