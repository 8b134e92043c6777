"""Repository for approval requests."""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.database.models import ApprovalRequest
from pricing_dashboard.repositories.base_repository import BaseRepository


class ApprovalRepository(BaseRepository[ApprovalRequest]):
    """Repository for managing ApprovalRequest records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ApprovalRequest)

    async def list_requests(self, status: Optional[str] = None) -> List[ApprovalRequest]:
        """All requests, newest first, optionally restricted to one status."""
        filters = {"status": status} if status else None
        return await self.get_all(
            limit=1000,
            filters=filters,
            order_by=ApprovalRequest.created_at.desc(),
        )

    async def list_for_creator(self, user_id: UUID) -> List[ApprovalRequest]:
        return await self.get_all(
            limit=1000,
            filters={"created_by_user_id": user_id},
            order_by=ApprovalRequest.created_at.desc(),
        )

    async def count_by_status(self) -> Dict[str, int]:
        """Return a status -> count mapping over all requests."""
        try:
            query = select(ApprovalRequest.status, func.count()).group_by(ApprovalRequest.status)
            result = await self.session.execute(query)
            return {status: count for status, count in result.all()}
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting approval requests: {e}", exc_info=True)
            raise
