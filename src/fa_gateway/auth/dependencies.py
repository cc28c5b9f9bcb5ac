"""FastAPI dependencies: get_current_manager, require_admin.

Usage in any protected router:
    from src.fa_gateway.auth.dependencies import get_current_manager

    @router.get("/protected")
    async def protected(manager: ManagerModel = Depends(get_current_manager)):
        ...
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.fa_common.database import get_db_session
from src.fa_common.errors import AccountDisabledError, AdminRequiredError, InvalidCredentialsError
from src.fa_gateway.auth.jwt_handler import decode_token
from src.fa_gateway.manager.db_models import ManagerModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_manager(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> ManagerModel:
    """Resolve the Bearer token to a ManagerModel.

    Raises HTTP 401 if the token is missing, invalid, expired, or names an
    unknown manager. Raises AccountDisabledError (403) for disabled managers.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    try:
        manager_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None

    result = await db.execute(select(ManagerModel).where(ManagerModel.id == manager_id))
    manager = result.scalar_one_or_none()
    if manager is None:
        raise _CREDENTIALS_EXCEPTION

    if not manager.is_active:
        raise AccountDisabledError()

    return manager


async def require_admin(
    current_manager: ManagerModel = Depends(get_current_manager),
) -> ManagerModel:
    """Raises AdminRequiredError (1006, HTTP 403) unless the caller is an admin."""
    if not current_manager.is_admin:
        raise AdminRequiredError()
    return current_manager
