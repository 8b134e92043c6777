"""Restores missing or weak analysis insights with calculation breakdowns."""

import asyncio
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import AppError, QuotaExceededError
from pricing_dashboard.repositories.document_analysis_repository import DocumentAnalysisRepository
from pricing_dashboard.schemas.insights import dump_insights
from pricing_dashboard.services.insight_generator import InsightGenerator
from pricing_dashboard.utils.insight_parser import document_text, has_extracted_data, has_good_insights
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


class InsightRestorer:
    """Fills in insights only where they are missing, one document at a time.

    Documents are paced so the provider is not flooded, and the run stops at
    the first quota error because every following call would fail too.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        generator: Optional[InsightGenerator] = None,
        pacing_seconds: Optional[float] = None,
    ):
        self.analyses = DocumentAnalysisRepository(db_session)
        self.generator = generator or InsightGenerator()
        self.pacing_seconds = (
            settings.dashboard.restoration_pacing if pacing_seconds is None else pacing_seconds
        )

    async def restore(self, user_id: UUID) -> Dict[str, object]:
        """Restore insights for every analysis of a user.

        Returns:
            ``{processed, skipped, failed, quotaWarning}``
        """
        analyses = await self.analyses.list_for_user(user_id)
        processed = skipped = failed = 0
        quota_warning = False

        LOGGER.info(f"Starting insight restoration for {len(analyses)} analyses", extra={"user_id": str(user_id)})

        for index, analysis in enumerate(analyses):
            if has_good_insights(analysis.insights) or not has_extracted_data(analysis.extracted_data):
                skipped += 1
                continue

            try:
                breakdown = await self.generator.generate_calculation_breakdown(
                    analysis.file_name, document_text(analysis.extracted_data)
                )
            except QuotaExceededError as e:
                LOGGER.warning(f"Stopping restoration, provider quota reached: {e.message}")
                quota_warning = True
                failed += 1
                break
            except AppError as e:
                LOGGER.error(f"Restoration failed for {analysis.file_name}: {e.message}")
                failed += 1
            else:
                if breakdown is None:
                    failed += 1
                else:
                    await self.analyses.update(analysis.id, insights=dump_insights(breakdown))
                    processed += 1
                    LOGGER.info(f"Restored insights for {analysis.file_name}", extra={"analysis_id": str(analysis.id)})

            if index < len(analyses) - 1 and self.pacing_seconds > 0:
                await asyncio.sleep(self.pacing_seconds)

        LOGGER.info(
            "Insight restoration finished",
            extra={"processed": processed, "skipped": skipped, "failed": failed},
        )
        return {
            "processed": processed,
            "skipped": skipped,
            "failed": failed,
            "quotaWarning": quota_warning,
        }
