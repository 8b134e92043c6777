"""User registration and credential checks."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import ValidationError
from pricing_dashboard.core.security import hash_password, verify_password
from pricing_dashboard.database.models import User
from pricing_dashboard.repositories.user_repository import UserRepository
from pricing_dashboard.schemas.auth import RegisterRequest
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserService:
    def __init__(self, db_session: AsyncSession):
        self.repository = UserRepository(db_session)

    async def register(self, payload: RegisterRequest) -> User:
        """Create a user with the configured default role.

        Raises:
            ValidationError: If the email is already registered
        """
        if await self.repository.get_by_email(payload.email):
            raise ValidationError("User already exists")

        user = await self.repository.create(
            email=payload.email.strip().lower(),
            password_hash=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            role=settings.auth.default_role,
        )
        LOGGER.info("User registered", extra={"user_id": str(user.id)})
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, None otherwise."""
        user = await self.repository.get_by_email(email)
        if user is None or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            LOGGER.info("Rejected login with wrong password", extra={"user_id": str(user.id)})
            return None
        return user

    async def get_user(self, user_id: UUID) -> Optional[User]:
        return await self.repository.get_by_id(user_id)
