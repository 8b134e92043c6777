"""Repository for document analyses."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.database.models import DocumentAnalysis
from pricing_dashboard.repositories.base_repository import BaseRepository


class DocumentAnalysisRepository(BaseRepository[DocumentAnalysis]):
    """Repository for managing DocumentAnalysis records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DocumentAnalysis)

    async def list_for_user(
        self,
        user_id: UUID,
        upload_id: Optional[UUID] = None,
        limit: int = 1000,
    ) -> List[DocumentAnalysis]:
        """Analyses of one user in creation order, optionally for a single upload."""
        filters = {"user_id": user_id}
        if upload_id is not None:
            filters["upload_id"] = upload_id
        return await self.get_all(
            limit=limit,
            filters=filters,
            order_by=DocumentAnalysis.created_at.asc(),
        )

    async def find_by_file_name(
        self, upload_id: UUID, file_name: str, analysis_type: str
    ) -> Optional[DocumentAnalysis]:
        """Return the latest analysis of a given type for a file inside an upload."""
        try:
            query = (
                select(DocumentAnalysis)
                .where(
                    DocumentAnalysis.upload_id == upload_id,
                    DocumentAnalysis.file_name == file_name,
                    DocumentAnalysis.analysis_type == analysis_type,
                )
                .order_by(DocumentAnalysis.created_at.desc())
                .limit(1)
            )
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error looking up analysis for {file_name}: {e}", exc_info=True)
            raise

    async def clear_insights_for_user(self, user_id: UUID) -> int:
        """Reset the insights of every analysis owned by a user.

        Returns:
            Number of analyses touched
        """
        try:
            result = await self.session.execute(
                update(DocumentAnalysis)
                .where(DocumentAnalysis.user_id == user_id)
                .values(insights=None)
            )
            await self.session.commit()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(f"Error clearing insights for user {user_id}: {e}", exc_info=True)
            raise
