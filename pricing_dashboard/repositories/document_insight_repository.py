"""Repository for cross-document insights."""

from typing import List
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.database.models import DocumentInsight
from pricing_dashboard.repositories.base_repository import BaseRepository


class DocumentInsightRepository(BaseRepository[DocumentInsight]):
    """Repository for managing DocumentInsight records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DocumentInsight)

    async def list_for_user(self, user_id: UUID, limit: int = 200) -> List[DocumentInsight]:
        return await self.get_all(
            limit=limit,
            filters={"user_id": user_id},
            order_by=DocumentInsight.created_at.desc(),
        )

    async def delete_for_user(self, user_id: UUID) -> int:
        """Delete every insight of a user and return how many were removed."""
        try:
            result = await self.session.execute(
                delete(DocumentInsight).where(DocumentInsight.user_id == user_id)
            )
            await self.session.commit()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(f"Error deleting insights for user {user_id}: {e}", exc_info=True)
            raise
