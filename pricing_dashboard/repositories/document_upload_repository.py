"""Repository for document uploads."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.database.models import DocumentUpload
from pricing_dashboard.repositories.base_repository import BaseRepository


class DocumentUploadRepository(BaseRepository[DocumentUpload]):
    """Repository for managing DocumentUpload records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DocumentUpload)

    async def list_for_user(self, user_id: UUID, limit: int = 200) -> List[DocumentUpload]:
        """Uploads of one user, newest first."""
        return await self.get_all(
            limit=limit,
            filters={"user_id": user_id},
            order_by=DocumentUpload.created_at.desc(),
        )

    async def get_for_user(self, upload_id: UUID, user_id: UUID) -> Optional[DocumentUpload]:
        upload = await self.get_by_id(upload_id)
        if upload is None or upload.user_id != user_id:
            return None
        return upload
