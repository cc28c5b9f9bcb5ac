"""Manager identity service: register, login, refresh.

Transactions are managed by the caller (router layer) via `async with db.begin()`.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fa_common.errors import (
    AccountDisabledError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.fa_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.fa_gateway.auth.password import hash_password, verify_password
from src.fa_gateway.manager.db_models import ManagerModel


class ManagerService:
    """Stateless service; instantiate once, reuse across requests."""

    async def register(
        self,
        username: str,
        password: str,
        db: AsyncSession,
        display_name: str | None = None,
    ) -> ManagerModel:
        """Register a manager with the default starting budget.

        The configured ADMIN_USERNAME is granted the admin flag.
        """
        result = await db.execute(
            select(ManagerModel).where(ManagerModel.username == username)
        )
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        manager = ManagerModel(
            username=username,
            display_name=display_name,
            password_hash=hash_password(password),
            is_admin=username == settings.ADMIN_USERNAME,
            is_active=True,
            starting_budget=settings.DEFAULT_STARTING_BUDGET,
        )
        db.add(manager)
        await db.flush()  # Get manager.id and created_at without committing
        await db.refresh(manager)
        return manager

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[ManagerModel, str, str]:
        """Authenticate and return (manager, access_token, refresh_token).

        "Unknown user" and "wrong password" both raise InvalidCredentialsError.
        """
        result = await db.execute(
            select(ManagerModel).where(ManagerModel.username == username)
        )
        manager = result.scalar_one_or_none()

        if manager is None or not verify_password(password, manager.password_hash):
            raise InvalidCredentialsError()

        if not manager.is_active:
            raise AccountDisabledError()

        return (
            manager,
            create_access_token(str(manager.id)),
            create_refresh_token(str(manager.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate refresh token and return a new access token."""
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))
