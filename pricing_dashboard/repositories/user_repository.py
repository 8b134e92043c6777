"""Repository for dashboard users."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.database.models import User
from pricing_dashboard.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for managing User records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Look a user up by email, case-insensitively."""
        try:
            query = select(User).where(func.lower(User.email) == email.strip().lower())
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error retrieving user by email: {e}", exc_info=True)
            raise
